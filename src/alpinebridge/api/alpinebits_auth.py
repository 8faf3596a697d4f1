"""Envelope authentication for the AlpineBits endpoint.

Checks, in order:
  1. X-AlpineBits-ClientProtocolVersion present (400).
  2. Server credentials configured (500, fail closed).
  3. HTTP Basic credentials match (401 with a Basic challenge).
  4. X-AlpineBits-ClientID present when required (400).
"""

from __future__ import annotations

import base64
import binascii
import hmac
from dataclasses import dataclass

from fastapi import Request

from alpinebridge.domain.errors import AuthError
from alpinebridge.infra.settings import AlpineBitsSettings, get_alpinebits_settings
from alpinebridge.observability.logging import get_logger
from alpinebridge.observability.redaction import identifier_prefix, safe_log_context

logger = get_logger(__name__)

PROTOCOL_VERSION_HEADER = "X-AlpineBits-ClientProtocolVersion"
CLIENT_ID_HEADER = "X-AlpineBits-ClientID"
BASIC_CHALLENGE = 'Basic realm="AlpineBits"'

INVALID_CREDENTIALS_REASON = "invalid or missing username/password"


@dataclass(frozen=True)
class AlpineBitsContext:
    """Validated envelope data of one protocol request."""

    protocol_version: str
    client_id: str | None
    username: str


def _decode_basic_credentials(auth_header: str) -> tuple[str, str] | None:
    """Decode ``Basic <base64(user:password)>``.

    Returns:
        (username, password), or None if the header is malformed.
    """
    scheme, _, encoded = auth_header.partition(" ")
    if scheme.lower() != "basic" or not encoded.strip():
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, separator, password = decoded.partition(":")
    if not separator:
        return None
    return username, password


def _credentials_match(settings: AlpineBitsSettings, username: str, password: str) -> bool:
    # Evaluate both comparisons so timing does not reveal which one failed
    user_ok = hmac.compare_digest(username.encode("utf-8"), settings.username.encode("utf-8"))
    password_ok = hmac.compare_digest(
        password.encode("utf-8"), settings.password.encode("utf-8")
    )
    return user_ok and password_ok


def authenticate_alpinebits(request: Request) -> AlpineBitsContext:
    """Validate the protocol envelope of an AlpineBits request.

    Args:
        request: FastAPI request object.

    Returns:
        AlpineBitsContext with the protocol version, client id and username.

    Raises:
        AuthError: On the first failing check.
    """
    protocol_version = request.headers.get(PROTOCOL_VERSION_HEADER, "").strip()
    if not protocol_version:
        raise AuthError(400, f"missing {PROTOCOL_VERSION_HEADER} header")

    settings = get_alpinebits_settings()
    if not settings.credentials_configured:
        logger.error(
            "alpinebits credentials not configured - fail closed",
            extra={"extra_fields": safe_log_context(reason="missing_credentials_env")},
        )
        raise AuthError(500, "authentication not configured")

    credentials = _decode_basic_credentials(request.headers.get("Authorization", ""))
    if credentials is None or not _credentials_match(settings, *credentials):
        logger.warning(
            "alpinebits auth failed",
            extra={
                "extra_fields": safe_log_context(
                    reason="malformed_header" if credentials is None else "mismatch",
                )
            },
        )
        raise AuthError(401, INVALID_CREDENTIALS_REASON, challenge=True)

    client_id = request.headers.get(CLIENT_ID_HEADER, "").strip() or None
    if settings.require_client_id and client_id is None:
        raise AuthError(400, "no valid client id provided")

    logger.info(
        "alpinebits request authenticated",
        extra={
            "extra_fields": safe_log_context(
                protocol_version=protocol_version,
                client_id=identifier_prefix(client_id),
            )
        },
    )
    return AlpineBitsContext(
        protocol_version=protocol_version,
        client_id=client_id,
        username=credentials[0],
    )
