"""
Capability Token Codec: availability keys.

A key is an HS256-signed JWT carrying everything the booking step needs to rebuild
the supplier request for one availability slot (product, option, availability id,
currency, unit items). There is no server-side session: the key is the only state
between search and booking, and the signature stops clients from changing unit
composition, option or currency in between.

Usage:
    key = mint(payload, secret_key)
    payload = redeem(key, secret_key)
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from pydantic import ValidationError

from octo_adapter.core.errors import ConfigurationError, TokenIntegrityError
from octo_adapter.core.schemas import CapabilityTokenPayload

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(days=7)

# Registered claims added by the codec; not part of the semantic payload.
_CLAIMS = ("iat", "exp")


def require_secret(secret_key: str | None) -> str:
    """Fail fast when the deployment has no signing secret configured."""
    if not secret_key:
        raise ConfigurationError("JWT secret should be set")
    return secret_key


def mint(
    payload: CapabilityTokenPayload,
    secret_key: str | None,
    ttl: timedelta | None = None,
    now: datetime | None = None,
) -> str:
    """
    Sign an availability payload.

    Args:
        payload: Slot booking intent.
        secret_key: Process-wide signing secret.
        ttl: Key lifetime (default 7 days).
        now: Issue time override (tests).

    Returns:
        Compact JWT string, opaque to clients.
    """
    key = require_secret(secret_key)
    issued = now or datetime.now(timezone.utc)
    claims = payload.to_dict(exclude_none=True)
    claims["iat"] = int(issued.timestamp())
    claims["exp"] = int((issued + (ttl or DEFAULT_TTL)).timestamp())
    return jwt.encode(claims, key, algorithm=ALGORITHM)


def redeem(token: str | None, secret_key: str | None) -> CapabilityTokenPayload:
    """
    Verify an availability key and return its payload.

    Raises:
        ConfigurationError: no signing secret configured.
        TokenIntegrityError: bad signature, expired, truncated or malformed payload.
    """
    key = require_secret(secret_key)
    if not token or not isinstance(token, str):
        raise TokenIntegrityError("An availability key is required")

    try:
        claims = jwt.decode(token, key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning("Availability key rejected: %s", e)
        raise TokenIntegrityError() from e

    for claim in _CLAIMS:
        claims.pop(claim, None)

    try:
        return CapabilityTokenPayload.model_validate(claims)
    except ValidationError as e:
        logger.warning("Availability key has an unexpected payload shape")
        raise TokenIntegrityError("Availability key payload is malformed") from e
