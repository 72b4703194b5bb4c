# app/services/google_identity.py
"""Verify Google Sign-In ID tokens via Google's tokeninfo endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from app.config import get_settings
from app.errors import AuthenticationError

logger = logging.getLogger("ledger.auth")

TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"


@dataclass(frozen=True)
class GoogleIdentity:
    email: str
    name: str
    picture: Optional[str] = None


def verify_google_credential(credential: str) -> GoogleIdentity:
    """
    Ask Google whether `credential` is a valid ID token issued for our client.
    Any doubt is a 401.
    """
    if not credential:
        raise AuthenticationError("Missing Google credential.")
    try:
        resp = httpx.get(TOKENINFO_URL, params={"id_token": credential}, timeout=10.0)
    except httpx.HTTPError as e:
        logger.warning("Google tokeninfo request failed: %s", e)
        raise AuthenticationError("Could not verify Google credential.") from e

    if resp.status_code != 200:
        raise AuthenticationError("Invalid Google credential.")

    info = resp.json()
    if info.get("aud") != get_settings().google_client_id:
        raise AuthenticationError("Invalid Google credential.")
    if str(info.get("email_verified")).lower() != "true" or not info.get("email"):
        raise AuthenticationError("Google email is not verified.")

    email = info["email"].strip().lower()
    return GoogleIdentity(
        email=email,
        name=info.get("name") or email.split("@")[0],
        picture=info.get("picture"),
    )


IdentityVerifier = Callable[[str], GoogleIdentity]


def get_identity_verifier() -> IdentityVerifier:
    """FastAPI dependency (overridden in tests)."""
    return verify_google_credential
