"""
Провайдеры поверх статических данных и внешнего callback.

Порядок при вызове сервера на аутентификацию:
- известны статические имя/пароль — отдаются они (пароль может быть пустым)
- иначе спрашивается callback: сначала имя, затем пароль
- иначе аутентификация не выполняется
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from davstore.secrets.base import MAX_CREDENTIAL_LEN, AuthCallback, CredentialProvider, Credentials


class StaticCredentialProvider(CredentialProvider):
    def __init__(self, username: str | None = None, password: str | None = None):
        self.username = username
        self.password = password

    def get_credentials(self, realm: str, attempt: int) -> Credentials | None:
        if not self.username:
            return None
        return Credentials(self.username, self.password or "")

    def clear(self) -> None:
        self.username = None
        self.password = None


class CallbackCredentialProvider(CredentialProvider):
    """Спрашивает имя и пароль у внешнего callback (по одному вызову на каждое)."""

    def __init__(self, callback: AuthCallback, userdata: Any = None, max_len: int = MAX_CREDENTIAL_LEN):
        self._callback = callback
        self._userdata = userdata
        self._max_len = max_len

    def _ask(self, prompt: str, is_username: bool, attempt: int) -> str:
        value = self._callback(prompt, self._max_len, is_username, attempt, self._userdata)
        return str(value or "")[: self._max_len]

    def get_credentials(self, realm: str, attempt: int) -> Credentials | None:
        logger.debug("Asking auth callback for credentials (realm={!r})", realm)
        user = self._ask("Enter your username: ", True, attempt)
        password = self._ask("Enter your password: ", False, attempt)
        if not user and not password:
            logger.debug("Auth callback returned no credentials")
            return None
        return Credentials(user, password)


class ChainedCredentialProvider(CredentialProvider):
    """Первый провайдер, вернувший данные, побеждает."""

    def __init__(self, *providers: CredentialProvider | None):
        self._providers = [p for p in providers if p is not None]

    def get_credentials(self, realm: str, attempt: int) -> Credentials | None:
        for provider in self._providers:
            creds = provider.get_credentials(realm, attempt)
            if creds is not None:
                return creds
        logger.warning("Server requires authentication but no credentials are available")
        return None
