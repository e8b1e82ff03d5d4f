"""Pre-authenticated session state for readiness checks."""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Mapping, Optional, Protocol

import httpx

from .exceptions import AuthStateError
from .fixtures import FixtureUser

logger = logging.getLogger(__name__)

SESSION_STORAGE_KEY = "readiness-auth-token"


class Authenticator(Protocol):
    def __call__(self, user: FixtureUser) -> Mapping[str, Any]: ...


class PasswordAuthenticator:
    """Signs fixture users in against the backend's password grant endpoint."""

    def __init__(
        self,
        backend_url: str,
        access_key: str,
        *,
        client: Optional[httpx.Client] = None,
        timeout: float = 15.0,
    ) -> None:
        self._token_url = backend_url.rstrip("/") + "/auth/v1/token"
        self._access_key = access_key
        self._client = client
        self._timeout = timeout

    def _post(self, user: FixtureUser) -> httpx.Response:
        request = dict(
            params={"grant_type": "password"},
            json={"email": user.email, "password": user.password},
            headers={"apikey": self._access_key, "Authorization": f"Bearer {self._access_key}"},
        )
        if self._client is not None:
            return self._client.post(self._token_url, **request)
        with httpx.Client(timeout=self._timeout) as owned:
            return owned.post(self._token_url, **request)

    def __call__(self, user: FixtureUser) -> Mapping[str, Any]:
        try:
            response = self._post(user)
        except httpx.HTTPError as exc:
            raise AuthStateError(
                f"Sign-in request for role '{user.role}' failed: {exc}", step="auth_state"
            ) from exc
        if response.status_code >= 400:
            raise AuthStateError(
                f"Sign-in for role '{user.role}' rejected with status {response.status_code}",
                step="auth_state",
            )
        try:
            return response.json()
        except ValueError as exc:
            raise AuthStateError(
                f"Sign-in response for role '{user.role}' is not JSON", step="auth_state"
            ) from exc


class SyntheticAuthenticator:
    """Produces deterministic offline sessions for local and dry runs."""

    def __init__(self, seed: str) -> None:
        self._seed = seed

    def __call__(self, user: FixtureUser) -> Mapping[str, Any]:
        token = hashlib.sha256(f"{self._seed}:{user.email}".encode("utf-8")).hexdigest()
        return {
            "access_token": token,
            "token_type": "bearer",
            "expires_in": 3600,
            "user": {"email": user.email, "role": user.role},
        }


def build_storage_state(session: Mapping[str, Any], user: FixtureUser, origin: str) -> Mapping[str, Any]:
    """Wrap a session in the browser storage-state layout the checks load."""

    return {
        "cookies": [],
        "origins": [
            {
                "origin": origin,
                "localStorage": [
                    {"name": SESSION_STORAGE_KEY, "value": json.dumps(dict(session), sort_keys=True)},
                    {"name": "readiness-role", "value": user.role},
                ],
            }
        ],
    }


__all__ = [
    "Authenticator",
    "PasswordAuthenticator",
    "SESSION_STORAGE_KEY",
    "SyntheticAuthenticator",
    "build_storage_state",
]
