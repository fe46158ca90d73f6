"""
auth — аутентификация по требованию сервера (requests.auth.AuthBase).

Принцип:
- первый запрос уходит без заголовка Authorization
- на 401 провайдер учётных данных спрашивается один раз, запрос повторяется
- полученные данные дальше подставляются сразу (Basic)
"""

from __future__ import annotations

import re

import requests
from loguru import logger
from requests.auth import AuthBase, HTTPBasicAuth

from davstore.secrets.base import CredentialProvider, Credentials

_REALM_RE = re.compile(r'realm="?([^",]*)"?', flags=re.IGNORECASE)


class ChallengeAuth(AuthBase):
    """Отвечает на вызов 401 данными из CredentialProvider."""

    def __init__(self, provider: CredentialProvider):
        self.provider = provider
        self.credentials: Credentials | None = None
        self.attempt = 0

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        if self.credentials is not None:
            HTTPBasicAuth(*self.credentials)(r)
        try:
            self._body_pos = r.body.tell()
        except AttributeError:
            self._body_pos = None
        r.register_hook("response", self.handle_401)
        return r

    def forget(self) -> None:
        self.credentials = None
        self.attempt = 0

    def handle_401(self, r: requests.Response, **kwargs) -> requests.Response:
        if r.status_code != 401:
            self.attempt = 0
            return r

        # запрос уже был повторён с данными, второй раз не спрашиваем
        if r.request.headers.get("Authorization") or getattr(r.request, "_dav_retried", False):
            logger.debug("Authentication rejected for {}", r.request.url)
            self.credentials = None
            return r

        challenge = r.headers.get("www-authenticate", "")
        m = _REALM_RE.search(challenge)
        realm = m.group(1) if m else ""
        logger.debug("Authentication required (realm={!r}, attempt={})", realm, self.attempt)

        creds = self.provider.get_credentials(realm, self.attempt)
        if creds is None:
            return r
        self.credentials = creds
        self.attempt += 1

        if self._body_pos is not None:
            r.request.body.seek(self._body_pos)

        # Тело ответа больше не нужно, соединение можно отпускать.
        r.content
        r.close()

        prep = r.request.copy()
        HTTPBasicAuth(*creds)(prep)
        prep._dav_retried = True

        retried = r.connection.send(prep, **kwargs)
        retried.history.append(r)
        retried.request = prep
        return retried
