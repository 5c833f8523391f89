import base64
import time
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from jose import jwt
from svix.webhooks import Webhook

from core.config import settings
from core.security import (
    ALGORITHM,
    create_session_token,
    decode_session_token,
    verify_webhook_signature,
)

SECRET = "whsec_" + base64.b64encode(b"signing-key").decode("utf-8")


def _headers(body: bytes, timestamp: datetime = None, secret: str = SECRET) -> dict:
    ts = timestamp or datetime.now(timezone.utc)
    return {
        "svix-id": "msg_1",
        "svix-timestamp": str(int(ts.timestamp())),
        "svix-signature": Webhook(secret).sign("msg_1", ts, body.decode("utf-8")),
    }


def test_session_token_carries_profile_id():
    token, _ = create_session_token("user_123")

    payload = jwt.decode(token, settings.SESSION_SECRET, algorithms=[ALGORITHM])
    assert payload["sub"] == "user_123"
    assert payload["exp"] > time.time() + 24 * 60 * 60
    assert "email" not in payload


def test_session_token_keeps_identity_claims():
    token, _ = create_session_token("google_1", email="jane@x.io", given_name="Jane", picture=None)

    claims = decode_session_token(token)
    assert claims["email"] == "jane@x.io"
    assert claims["given_name"] == "Jane"
    assert "picture" not in claims


def test_non_session_token_is_rejected():
    token = jwt.encode({"sub": "email_1", "purpose": "password_reset"}, settings.SESSION_SECRET, algorithm=ALGORITHM)

    with pytest.raises(HTTPException) as exc:
        decode_session_token(token)
    assert exc.value.status_code == 401


def test_webhook_signature_returns_payload():
    body = b'{"type":"user.created","data":{}}'
    assert verify_webhook_signature(body, _headers(body), SECRET) == {"type": "user.created", "data": {}}


def test_webhook_signature_accepts_any_matching_entry():
    body = b'{"type":"user.deleted","data":{"id":"u1"}}'
    headers = _headers(body)
    headers["svix-signature"] = "v1,bm90LXRoaXMtb25l " + headers["svix-signature"]
    assert verify_webhook_signature(body, headers, SECRET)["type"] == "user.deleted"


def test_webhook_signature_rejects_tampered_body():
    body = b'{"type":"user.created","data":{}}'
    headers = _headers(body)

    with pytest.raises(HTTPException) as exc:
        verify_webhook_signature(body + b" ", headers, SECRET)

    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid webhook signature"


def test_webhook_signature_rejects_wrong_key():
    body = b"{}"
    other = "whsec_" + base64.b64encode(b"other-key").decode("utf-8")
    with pytest.raises(HTTPException) as exc:
        verify_webhook_signature(body, _headers(body, secret=other), SECRET)
    assert exc.value.status_code == 400


def test_webhook_signature_requires_svix_headers():
    with pytest.raises(HTTPException) as exc:
        verify_webhook_signature(b"{}", {"svix-id": "msg_1"}, SECRET)

    assert exc.value.status_code == 400
    assert exc.value.detail == "Error occured -- no svix headers"


def test_webhook_signature_rejects_stale_timestamp():
    body = b"{}"
    stale = datetime.now(timezone.utc) - timedelta(hours=1)

    with pytest.raises(HTTPException) as exc:
        verify_webhook_signature(body, _headers(body, timestamp=stale), SECRET)

    assert exc.value.status_code == 400
