"""Google OAuth authorization-code flow (consent URL, code exchange, userinfo)."""
import logging
from typing import Optional
from urllib.parse import quote, unquote, urlencode, urlsplit

import requests
from fastapi.concurrency import run_in_threadpool

from core.config import settings

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
SUPPORTED_PROVIDERS = ("google",)
REQUEST_TIMEOUT = 10


class OAuthError(Exception):
    """Carries the reason code placed in the sign-in redirect."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def safe_redirect_path(target: Optional[str], default: str = "/") -> str:
    """Only same-site relative paths are honoured as post-login destinations."""
    if not target:
        return default
    target = unquote(target)
    parts = urlsplit(target)
    if parts.scheme or parts.netloc or not target.startswith("/") or target.startswith("//"):
        return default
    return target


def build_authorization_url(redirect_uri: str, redirect_to: str) -> str:
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "access_type": "offline",
        "prompt": "consent",
        "state": quote(redirect_to, safe=""),
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def _exchange_code(code: str, redirect_uri: str) -> Optional[str]:
    try:
        resp = requests.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": redirect_uri,
            },
            timeout=REQUEST_TIMEOUT,
        )
        return resp.json().get("access_token")
    except (requests.RequestException, ValueError) as e:
        logger.error("Google token exchange failed: %s", e)
        return None


def _fetch_userinfo(access_token: str) -> dict:
    try:
        resp = requests.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("Google userinfo request failed: %s", e)
        return {}


async def exchange_code_for_user(code: str, redirect_uri: str) -> dict:
    """
    Trade an authorization code for the Google user record.
    Raises OAuthError("token_exchange_failed") or OAuthError("missing_user_email").
    """
    access_token = await run_in_threadpool(_exchange_code, code, redirect_uri)
    if not access_token:
        raise OAuthError("token_exchange_failed")
    user = await run_in_threadpool(_fetch_userinfo, access_token)
    if not user.get("email"):
        raise OAuthError("missing_user_email")
    return user


def identity_id_for(google_user: dict) -> str:
    return f"google_{google_user['id']}"
