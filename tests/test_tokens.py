from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from octo_adapter.core.errors import ConfigurationError, TokenIntegrityError
from octo_adapter.core.schemas import CapabilityTokenPayload, UnitItem
from octo_adapter.core.tokens import mint, redeem

SECRET = "unit-test-secret"


def _payload() -> CapabilityTokenPayload:
    return CapabilityTokenPayload(
        product_id="p-1",
        option_id="DEFAULT",
        availability_id="2026-05-01T09:00:00+01:00",
        currency="EUR",
        unit_items=[UnitItem(unit_id="adult"), UnitItem(unit_id="adult"), UnitItem(unit_id="child")],
        settlement_methods=["DEFERRED"],
    )


def test_mint_then_redeem_returns_the_same_payload():
    payload = _payload()
    assert redeem(mint(payload, SECRET), SECRET) == payload


def test_redeem_with_another_secret_fails():
    key = mint(_payload(), SECRET)
    with pytest.raises(TokenIntegrityError):
        redeem(key, "another-secret")


def test_truncated_key_fails():
    key = mint(_payload(), SECRET)
    with pytest.raises(TokenIntegrityError):
        redeem(key[:-5], SECRET)


def test_payload_changed_without_resigning_fails():
    key = mint(_payload(), SECRET)
    forged = jwt.encode({**jwt.get_unverified_claims(key), "currency": "USD"}, "attacker", algorithm="HS256")
    header, _, signature = key.split(".")
    _, body, _ = forged.split(".")
    with pytest.raises(TokenIntegrityError):
        redeem(f"{header}.{body}.{signature}", SECRET)


def test_expired_key_fails():
    issued = datetime.now(timezone.utc) - timedelta(days=2)
    key = mint(_payload(), SECRET, ttl=timedelta(hours=1), now=issued)
    with pytest.raises(TokenIntegrityError):
        redeem(key, SECRET)


def test_key_signed_with_right_secret_but_wrong_shape_fails():
    key = jwt.encode({"productId": "p-1"}, SECRET, algorithm="HS256")
    with pytest.raises(TokenIntegrityError, match="malformed"):
        redeem(key, SECRET)


@pytest.mark.parametrize("key", [None, ""])
def test_missing_key_fails(key):
    with pytest.raises(TokenIntegrityError):
        redeem(key, SECRET)


def test_missing_secret_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="JWT secret should be set"):
        mint(_payload(), None)
    with pytest.raises(ConfigurationError):
        redeem("a.b.c", "")


def test_key_claims_are_camel_case_with_expiry():
    claims = jwt.get_unverified_claims(mint(_payload(), SECRET, ttl=timedelta(hours=3)))
    assert claims["productId"] == "p-1"
    assert claims["unitItems"] == [{"unitId": "adult"}, {"unitId": "adult"}, {"unitId": "child"}]
    assert claims["exp"] - claims["iat"] == 3 * 3600
