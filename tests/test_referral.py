from __future__ import annotations

import asyncio
from decimal import Decimal

import pytest

from concertdesk.core.errors import ApiError
from concertdesk.core.referral import ReferralCodeField, ReferralValidator
from concertdesk.core.schemas import ReferralVerdict, Referrer

VALID = ReferralVerdict(
    valid=True,
    discount_percent=Decimal("10"),
    message="Referral code applied",
    referrer=Referrer(id="fan-9", username="jo", name="Jo Doe"),
)


@pytest.mark.asyncio
async def test_blank_code_short_circuits_without_api_call(api):
    validator = ReferralValidator(api)
    assert await validator.validate("") is None
    assert await validator.validate("   ") is None
    assert await validator.validate(None) is None
    api.validate_referral_code.assert_not_awaited()


@pytest.mark.asyncio
async def test_code_is_trimmed_before_validation(api):
    api.validate_referral_code.return_value = VALID
    verdict = await ReferralValidator(api).validate("  FRIEND10 ")
    assert verdict == VALID
    api.validate_referral_code.assert_awaited_once_with("FRIEND10")


@pytest.mark.asyncio
async def test_api_failure_becomes_invalid_verdict(api):
    api.validate_referral_code.side_effect = ApiError("connection refused")
    verdict = await ReferralValidator(api).validate("FRIEND10")
    assert verdict is not None
    assert verdict.valid is False
    assert verdict.message == "connection refused"


@pytest.mark.asyncio
async def test_commit_stores_verdict(api):
    api.validate_referral_code.return_value = VALID
    field = ReferralCodeField(ReferralValidator(api))
    field.set_code("FRIEND10")
    assert field.verdict is None

    await field.commit()
    assert field.verdict == VALID
    assert field.is_valid
    assert field.discount_percent == Decimal("10")
    assert field.applied_code == "FRIEND10"


@pytest.mark.asyncio
async def test_editing_code_clears_valid_verdict_immediately(api):
    api.validate_referral_code.return_value = VALID
    field = ReferralCodeField(ReferralValidator(api))
    field.set_code("FRIEND10")
    await field.commit()

    field.set_code("FRIEND1")
    assert field.verdict is None
    assert field.discount_percent == 0
    assert field.applied_code is None


@pytest.mark.asyncio
async def test_setting_same_text_keeps_verdict(api):
    api.validate_referral_code.return_value = VALID
    field = ReferralCodeField(ReferralValidator(api))
    field.set_code("FRIEND10")
    await field.commit()
    field.set_code("FRIEND10")
    assert field.verdict == VALID


@pytest.mark.asyncio
async def test_invalid_verdict_gives_no_discount(api):
    api.validate_referral_code.return_value = ReferralVerdict.invalid("Invalid referral code")
    field = ReferralCodeField(ReferralValidator(api))
    field.set_code("NOPE")
    await field.commit()
    assert field.verdict is not None
    assert field.is_valid is False
    assert field.discount_percent == 0
    assert field.applied_code is None


@pytest.mark.asyncio
async def test_commit_blank_code_clears_verdict(api):
    field = ReferralCodeField(ReferralValidator(api))
    field.set_code("  ")
    assert await field.commit() is None
    assert field.verdict is None
    api.validate_referral_code.assert_not_awaited()


@pytest.mark.asyncio
async def test_verdict_for_edited_code_is_discarded(api):
    gate = asyncio.Event()

    async def slow_validate(code: str) -> ReferralVerdict:
        await gate.wait()
        return VALID

    api.validate_referral_code.side_effect = slow_validate
    field = ReferralCodeField(ReferralValidator(api))
    field.set_code("FRIEND10")

    task = asyncio.create_task(field.commit())
    await asyncio.sleep(0)
    assert field.validating is True

    field.set_code("FRIEND1")
    assert field.validating is False
    gate.set()

    assert await task is None
    assert field.verdict is None
    assert field.code == "FRIEND1"


@pytest.mark.asyncio
async def test_clear_resets_field(api):
    api.validate_referral_code.return_value = VALID
    field = ReferralCodeField(ReferralValidator(api))
    field.set_code("FRIEND10")
    await field.commit()
    field.clear()
    assert field.code == ""
    assert field.verdict is None
