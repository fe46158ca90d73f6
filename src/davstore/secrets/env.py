"""
EnvCredentialProvider — учётные данные из переменных окружения.
"""

from __future__ import annotations

import os

from davstore.secrets.base import CredentialProvider, Credentials


class EnvCredentialProvider(CredentialProvider):
    def __init__(self, prefix: str = "DAVSTORE_"):
        self._prefix = prefix

    def get_credentials(self, realm: str, attempt: int) -> Credentials | None:
        user = os.getenv(f"{self._prefix}USER")
        if not user:
            return None
        return Credentials(user, os.getenv(f"{self._prefix}PASSWORD") or "")
