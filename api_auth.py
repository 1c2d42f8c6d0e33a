from __future__ import annotations

import json
import os
import secrets
from typing import Dict, Optional, Protocol

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials


router = APIRouter(tags=["auth"])

_basic = HTTPBasic(auto_error=False)

DEFAULT_CREDENTIALS = {
    "user_a": "passwordA",
    "user_b": "passwordB",
    "user_c": "passwordC",
    "admin": "Password1",
}


class CredentialStore(Protocol):
    def verify(self, username: str, password: str) -> bool:
        ...

    def has_user(self, username: str) -> bool:
        ...


class StaticCredentialStore:
    """Username/password table held in memory."""

    def __init__(self, credentials: Optional[Dict[str, str]] = None):
        table = DEFAULT_CREDENTIALS if credentials is None else credentials
        self._credentials = dict(table)

    def has_user(self, username: str) -> bool:
        return username in self._credentials

    def verify(self, username: str, password: str) -> bool:
        expected = self._credentials.get(username)
        if expected is None:
            return False
        return secrets.compare_digest(expected.encode("utf-8"), password.encode("utf-8"))


class JsonCredentialStore(StaticCredentialStore):
    """Credentials loaded from a ``{"username": "password"}`` JSON file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(_load_json(path, {}))


def _load_json(path: str, default):
    if not os.path.exists(path):
        return default
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must hold a JSON object of username -> password")
    return {str(k): str(v) for k, v in data.items()}


def get_credentials(request: Request) -> CredentialStore:
    creds = getattr(request.app.state, "credentials", None)
    if creds is None:
        raise HTTPException(status_code=503, detail="Credential store not ready")
    return creds


@router.api_route("/login", methods=["GET", "POST"], response_class=PlainTextResponse)
def login(
    basic: Optional[HTTPBasicCredentials] = Depends(_basic),
    credentials: CredentialStore = Depends(get_credentials),
):
    if basic is None:
        print("❌ Error parsing basic auth")
        raise HTTPException(status_code=401, detail="Missing basic auth")

    if not credentials.has_user(basic.username):
        print(f"❌ Username provided is incorrect: {basic.username}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not credentials.verify(basic.username, basic.password):
        print(f"❌ Password provided is incorrect for {basic.username}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = f"Bearer {secrets.token_urlsafe(16)}"
    return PlainTextResponse(token, headers={"Authorization": token})
