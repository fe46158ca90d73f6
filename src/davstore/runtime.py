"""
runtime — единственная точка, где определяется:
- откуда берутся настройки (переменные окружения DAVSTORE_*)
- как создаётся и уничтожается адаптер (module_init/module_shutdown)

Доменный код не должен читать окружение напрямую.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Callable

import requests
from loguru import logger

from davstore.filestore.dav import DavFileStore
from davstore.net.http import DEFAULT_TIMEOUT
from davstore.secrets.base import AuthCallback
from davstore.secrets.env import EnvCredentialProvider
from davstore.secrets.prompt import prompt_auth_callback
from davstore.utils.log import setup_logging

ENV_PREFIX = "DAVSTORE_"

_TRUE = ("1", "true", "True", "yes", "YES", "on")
_FALSE = ("0", "false", "False", "no", "NO", "off")


@dataclass(frozen=True)
class Settings:
    base_url: str | None = None
    username: str | None = None
    password: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    tmpdir: str | None = None
    verify_tls: bool = True
    user_agent: str = "davstore"
    interactive: bool = False
    debug: bool = False


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    logger.warning("Ignoring unrecognized value {!r} for {}", raw, name)
    return default


def load_settings(prefix: str = ENV_PREFIX) -> Settings:
    """Собирает Settings из окружения (все переменные опциональны)."""
    timeout = DEFAULT_TIMEOUT
    raw_timeout = os.getenv(f"{prefix}TIMEOUT")
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            logger.warning("Ignoring bad {}TIMEOUT={!r}", prefix, raw_timeout)

    creds = EnvCredentialProvider(prefix=prefix).get_credentials("", 0)

    return Settings(
        base_url=os.getenv(f"{prefix}URL") or None,
        username=creds.username if creds else None,
        password=creds.password if creds else None,
        timeout=timeout,
        tmpdir=os.getenv(f"{prefix}TMPDIR") or None,
        verify_tls=_flag(f"{prefix}VERIFY_TLS", True),
        user_agent=os.getenv(f"{prefix}USER_AGENT") or "davstore",
        interactive=_flag(f"{prefix}INTERACTIVE", False),
        debug=_flag(f"{prefix}DEBUG", False),
    )


def module_init(
    method_name: str,
    args: str | None = None,
    auth_callback: AuthCallback | None = None,
    userdata: Any = None,
    settings: Settings | None = None,
    session_factory: Callable[[], requests.Session] = requests.Session,
) -> DavFileStore:
    """Создаёт адаптер. auth_callback и userdata сохраняются до вызова сервера на аутентификацию."""
    settings = settings or load_settings()
    if settings.debug:
        setup_logging(verbose=True)

    logger.debug("davstore - method_name: {}", method_name)
    logger.debug("davstore - args: {}", args)

    if auth_callback is None and settings.interactive:
        auth_callback = prompt_auth_callback

    return DavFileStore(
        settings.base_url,
        username=settings.username,
        password=settings.password,
        auth_callback=auth_callback,
        userdata=userdata,
        timeout=settings.timeout,
        tmpdir=settings.tmpdir,
        verify=settings.verify_tls,
        user_agent=settings.user_agent,
        session_factory=session_factory,
    )


def module_shutdown(store: DavFileStore) -> None:
    """Освобождает учётные данные и уничтожает сессию."""
    store.shutdown()
