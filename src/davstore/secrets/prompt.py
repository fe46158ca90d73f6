"""
prompt_auth_callback — интерактивный ввод имени/пароля в терминале.

Используется как callback по умолчанию, если движок не передал свой
и включён DAVSTORE_INTERACTIVE=1.
"""

from __future__ import annotations

import getpass
from typing import Any


def prompt_auth_callback(prompt: str, max_len: int, is_username: bool, attempt: int, userdata: Any = None) -> str | None:
    """Имя спрашивается с эхом, пароль — через getpass."""
    value = input(prompt) if is_username else getpass.getpass(prompt)
    if value is None:
        return None
    return str(value).strip()[:max_len]
