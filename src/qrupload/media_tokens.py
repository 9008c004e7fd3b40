"""Read-token creation and verification for locally served objects."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum

TOKEN_VERSION = "v1"
TOKEN_SCOPE = "blob_read"
_SIGNING_CONTEXT = b"qrupload-read-token:v1"


class ReadTokenErrorCode(StrEnum):
    MALFORMED = "MALFORMED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    KEY_MISMATCH = "KEY_MISMATCH"
    SCOPE_MISMATCH = "SCOPE_MISMATCH"
    NOT_YET_VALID = "NOT_YET_VALID"
    EXPIRED = "EXPIRED"


class ReadTokenError(ValueError):
    """Raised when read token validation fails."""

    def __init__(self, code: ReadTokenErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True, slots=True)
class ReadTokenPayload:
    key: str
    scope: str
    nbf: int
    exp: int


def issue_read_token(
    *,
    signing_key: str,
    blob_key: str,
    ttl_s: float,
    now: datetime | None = None,
) -> tuple[str, datetime, datetime]:
    """Issue a signed token granting read access to one object.

    Returns the token with its start and expiry times.
    """
    issued_at = now or datetime.now(UTC)
    expiry_dt = issued_at + timedelta(seconds=ttl_s)
    payload_json = json.dumps(
        {
            "key": blob_key,
            "scope": TOKEN_SCOPE,
            "nbf": int(issued_at.timestamp()),
            "exp": int(expiry_dt.timestamp()),
        },
        separators=(",", ":"),
        sort_keys=True,
        ensure_ascii=True,
    ).encode("utf-8")
    payload_segment = _base64url_encode(payload_json)
    signature = _base64url_encode(_sign(signing_key, _signing_input(payload_segment)))
    token = f"{TOKEN_VERSION}.{payload_segment}.{signature}"
    return token, issued_at, expiry_dt


def validate_read_token(
    *,
    signing_key: str,
    token: str,
    blob_key: str,
    now: datetime | None = None,
) -> ReadTokenPayload:
    """Validate a read token for `blob_key` and return the decoded payload."""
    token_parts = token.split(".")
    if len(token_parts) != 3:
        raise ReadTokenError(ReadTokenErrorCode.MALFORMED, "Token format is invalid")

    version, payload_segment, signature_segment = token_parts
    if version != TOKEN_VERSION:
        raise ReadTokenError(ReadTokenErrorCode.MALFORMED, "Token version is invalid")

    expected_signature = _base64url_encode(_sign(signing_key, _signing_input(payload_segment)))
    if not hmac.compare_digest(signature_segment, expected_signature):
        raise ReadTokenError(ReadTokenErrorCode.INVALID_SIGNATURE, "Token signature is invalid")

    payload = _decode_payload(payload_segment)
    if payload.scope != TOKEN_SCOPE:
        raise ReadTokenError(ReadTokenErrorCode.SCOPE_MISMATCH, "Token scope is invalid")
    if payload.key != blob_key:
        raise ReadTokenError(ReadTokenErrorCode.KEY_MISMATCH, "Token key is invalid")

    now_ts = int((now or datetime.now(UTC)).timestamp())
    if now_ts < payload.nbf:
        raise ReadTokenError(ReadTokenErrorCode.NOT_YET_VALID, "Token is not yet valid")
    if payload.exp <= now_ts:
        raise ReadTokenError(ReadTokenErrorCode.EXPIRED, "Token has expired")
    return payload


def _decode_payload(payload_segment: str) -> ReadTokenPayload:
    try:
        raw_payload = _base64url_decode(payload_segment)
        payload_obj = json.loads(raw_payload.decode("utf-8"))
    except Exception as exc:
        raise ReadTokenError(ReadTokenErrorCode.MALFORMED, "Token payload is malformed") from exc

    if not isinstance(payload_obj, dict):
        raise ReadTokenError(ReadTokenErrorCode.MALFORMED, "Token payload is malformed")

    key = payload_obj.get("key")
    scope = payload_obj.get("scope")
    nbf = payload_obj.get("nbf")
    exp = payload_obj.get("exp")
    if (
        not isinstance(key, str)
        or not isinstance(scope, str)
        or not isinstance(nbf, int)
        or not isinstance(exp, int)
    ):
        raise ReadTokenError(ReadTokenErrorCode.MALFORMED, "Token payload is malformed")

    return ReadTokenPayload(key=key, scope=scope, nbf=nbf, exp=exp)


def _derive_signing_key(signing_key: str) -> bytes:
    return hmac.new(signing_key.encode("utf-8"), _SIGNING_CONTEXT, hashlib.sha256).digest()


def _sign(signing_key: str, message: bytes) -> bytes:
    return hmac.new(_derive_signing_key(signing_key), message, hashlib.sha256).digest()


def _signing_input(payload_segment: str) -> bytes:
    return f"{TOKEN_VERSION}.{payload_segment}".encode()


def _base64url_encode(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).rstrip(b"=").decode("ascii")


def _base64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode((value + padding).encode("ascii"))
