"""
CredentialProvider — универсальный интерфейс получения учётных данных.

Вызывается только по требованию сервера (ответ 401).
Статические данные: из URL или окружения.
Интерактивные: через внешний callback (UI движка синхронизации) или getpass.
"""

from __future__ import annotations

from typing import Any, Callable, NamedTuple, Protocol

# Размер буфера под имя/пароль, который передаётся в callback.
MAX_CREDENTIAL_LEN = 255

# callback(prompt, max_len, is_username, attempt, userdata) -> строка или None
AuthCallback = Callable[[str, int, bool, int, Any], "str | None"]


class Credentials(NamedTuple):
    username: str
    password: str


class CredentialProvider(Protocol):
    """Провайдер учётных данных."""

    def get_credentials(self, realm: str, attempt: int) -> Credentials | None:
        """Возвращает пару (имя, пароль) или None, если дать её нечем."""
        ...
