from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from octo_adapter.config import DEFAULT_ENDPOINT
from octo_adapter.core.errors import InvalidRequestError
from octo_adapter.core.schemas import Credentials, parse_request
from octo_adapter.core.secrets import CREDENTIAL_SECRETS, resolve_profile_secrets

logger = logging.getLogger(__name__)

UUID_RE = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")
URL_RE = re.compile(
    r"^https?://(?:[^\s:@/]+(?::[^\s@/]*)?@)?"
    r"(?:localhost|(?:\d{1,3}\.){3}\d{1,3}|(?:[\w-]+\.)+[a-z]{2,})"
    r"(?::\d{2,5})?(?:[/?#]\S*)?$",
    re.IGNORECASE,
)
OCTO_ENV_RE = re.compile(r"^(live|test)$")
LANGUAGE_RE = re.compile(r"^[a-z]{2}$")


def token_template() -> dict[str, dict[str, Any]]:
    """Describe the credential fields a host must collect for a supplier connection."""
    return {
        "apiKey": {
            "type": "text",
            "regExp": UUID_RE,
            "description": "The API key provided by the supplier, in UUID format",
        },
        "resellerId": {
            "type": "text",
            "regExp": UUID_RE,
            "description": "The reseller id provided by the supplier, in UUID format",
        },
        "endpoint": {
            "type": "text",
            "regExp": URL_RE,
            "default": DEFAULT_ENDPOINT,
            "description": "The OCTO API endpoint of the supplier",
        },
        "octoEnv": {
            "type": "text",
            "list": ["live", "test"],
            "regExp": OCTO_ENV_RE,
            "default": "live",
            "description": "On test no availability is consumed, barcodes do not work and nothing is invoiced",
        },
        "acceptLanguage": {
            "type": "text",
            "regExp": LANGUAGE_RE,
            "default": "en",
            "description": "Two-letter language code; translated supplier content is returned when available",
        },
    }


def validate_credentials_against_template(credentials: Credentials) -> list[str]:
    """Return template violations. Empty list means the credentials look well-formed."""
    errs: list[str] = []
    values = credentials.to_dict()
    for key, rule in token_template().items():
        value = values.get(key)
        if value in (None, ""):
            if key == "apiKey":
                errs.append("apiKey: required")
            continue
        if not rule["regExp"].match(value):
            errs.append(f"{key}: invalid value")
    return errs


def load_credentials(
    path: str | Path,
    profile: str | None = None,
    secrets_root: str | Path = "secrets",
) -> Credentials:
    """
    Load supplier credentials from a YAML file.

    Expected structure:
      credentials:
        api_key: "..."
        endpoint: "https://..."
        octo_env: "test"
        accept_language: "en"

    A file may hold several profiles under ``profiles: {<name>: {...}}``. Fields a
    profile leaves out are resolved from its secrets (see octo_adapter.core.secrets).
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"credentials file not found: {file_path}")

    with file_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if profile:
        section = (data.get("profiles") or {}).get(profile)
        if section is None:
            raise InvalidRequestError(f"profile '{profile}' not found in {file_path}")
    else:
        section = data.get("credentials", data)

    credentials = parse_request(Credentials, section)
    if profile:
        missing = [name for name in CREDENTIAL_SECRETS if not getattr(credentials, name)]
        resolved = resolve_profile_secrets(profile, missing, secrets_root)
        if resolved:
            credentials = parse_request(Credentials, {**credentials.model_dump(), **resolved})
        if not credentials.api_key:
            logger.warning("No api_key for profile '%s' in %s or its secrets", profile, file_path)
    return credentials
