"""Invite token issuer.

Tokens are URL-safe random strings; the link points at the external accept
flow, which is responsible for redemption.
"""

from __future__ import annotations

import os
import secrets

from cocentrica.application.ports.invite_issuer import InviteIssuerProtocol

APP_BASE_URL_ENV = "APP_BASE_URL"
DEFAULT_APP_BASE_URL = "http://localhost:3000"

# 24 random bytes encode to 32 URL-safe characters
_TOKEN_BYTES = 24


class SecretsInviteIssuer(InviteIssuerProtocol):
    """Issues invite tokens from the ``secrets`` CSPRNG."""

    def __init__(self, base_url: str | None = None) -> None:
        self._base_url = (
            base_url or os.environ.get(APP_BASE_URL_ENV, DEFAULT_APP_BASE_URL)
        ).rstrip("/")

    def issue_token(self) -> str:
        return secrets.token_urlsafe(_TOKEN_BYTES)

    def invite_link(self, token: str) -> str:
        return f"{self._base_url}/accept?token={token}"
