"""
Credential secrets for named profiles.

A profile in the credentials file may leave any credential field out; the missing
values are looked up here, first in the environment, then on disk:

    OCTO_SECRET_ACME_TOURS_API_KEY      (env)
    secrets/acme-tours/api_key          (file)

Profiles let one file describe several supplier connections without committing keys.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

# Credentials fields (snake_case) that may be provided as secrets.
CREDENTIAL_SECRETS: tuple[str, ...] = ("api_key", "reseller_id", "endpoint", "octo_env", "accept_language")


def secret_env_var(profile: str, secret_name: str) -> str:
    return f"OCTO_SECRET_{_slugify(profile)}_{_slugify(secret_name)}"


def resolve_secret(profile: str, secret_name: str, secrets_root: str | Path = "secrets") -> str | None:
    """Value of one profile secret, or None when neither source has it."""
    value = os.environ.get(secret_env_var(profile, secret_name))
    if value:
        logger.debug("Secret %s/%s read from the environment", profile, secret_name)
        return value

    secret_file = Path(secrets_root) / profile / secret_name
    if secret_file.is_file():
        value = secret_file.read_text(encoding="utf-8").strip()
        if value:
            logger.debug("Secret %s/%s read from %s", profile, secret_name, secret_file)
            return value
    return None


def resolve_profile_secrets(
    profile: str,
    names: Iterable[str] = CREDENTIAL_SECRETS,
    secrets_root: str | Path = "secrets",
) -> dict[str, str]:
    """Resolve several secrets of a profile. Names without a value are left out."""
    found: dict[str, str] = {}
    for name in names:
        value = resolve_secret(profile, name, secrets_root)
        if value is not None:
            found[name] = value
    return found


def _slugify(s: str) -> str:
    """Env-safe form of a profile or secret name: acme-tours -> ACME_TOURS."""
    return s.replace("-", "_").replace(".", "_").upper()
