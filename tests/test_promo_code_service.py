from datetime import timedelta
from decimal import Decimal

import pytest

from checkout.domain.errors import (
    DuplicatePromoCode,
    PromoCodeNotFound,
    PromoExpired,
    PromoInactive,
    PromoInvalid,
    PromoUnknown,
    PromoUsageLimitExceeded,
    ValidationError,
)
from checkout.domain.schemas import PromoCodeCreate, PromoCodeUpdate
from checkout.services.promo_code_service import PromoCodeService
from checkout.utils.money import utcnow


def _create(svc, code="SAVE10", pct="10", **kwargs):
    return svc.create_promo_code(
        PromoCodeCreate(code=code, discount_percentage=Decimal(pct), **kwargs)
    )


def test_create_stores_code_upper_case(promo_service):
    promo = _create(promo_service, code="save10")

    assert promo["code"] == "SAVE10"
    assert promo["current_usage_count"] == 0
    assert promo["discount_percentage"] == Decimal("10")


def test_duplicate_code_is_case_insensitive(promo_service):
    _create(promo_service, code="SAVE10")

    with pytest.raises(DuplicatePromoCode):
        _create(promo_service, code="save10")


@pytest.mark.parametrize("pct", ["0", "100.01", "-5"])
def test_percentage_must_be_in_range(promo_service, pct):
    with pytest.raises(ValidationError):
        _create(promo_service, pct=pct)


def test_full_percentage_allowed(promo_service):
    assert _create(promo_service, code="FREE", pct="100")["discount_percentage"] == Decimal("100")


@pytest.mark.parametrize("lookup", ["SAVE10", "save10", "Save10", " save10 "])
def test_validate_is_case_insensitive(promo_service, lookup):
    _create(promo_service, code="SAVE10")

    assert promo_service.validate(lookup).code == "SAVE10"


def test_validate_unknown(promo_service):
    with pytest.raises(PromoUnknown) as exc:
        promo_service.validate("NOPE")
    assert exc.value.reason == "not_found"


def test_validate_inactive(promo_service):
    _create(promo_service, code="OFF", is_active=False)

    with pytest.raises(PromoInactive):
        promo_service.validate("OFF")


def test_validate_expired(promo_service):
    _create(promo_service, code="OLD", expiration_date=utcnow() - timedelta(days=1))

    with pytest.raises(PromoExpired):
        promo_service.validate("OLD")


def test_validate_future_expiration_ok(promo_service):
    _create(promo_service, code="NEW", expiration_date=utcnow() + timedelta(days=1))

    assert promo_service.validate("NEW").code == "NEW"


def test_validate_usage_limit_reached(promo_service):
    _create(promo_service, code="ONCE", usage_limit=1)
    promo = promo_service.validate("ONCE")
    promo_service.record_usage(promo, user_id=None, discount_amount=Decimal("1.00"), order_total=Decimal("10.00"))

    with pytest.raises(PromoUsageLimitExceeded):
        promo_service.validate("ONCE")


def test_check_returns_result_instead_of_raising(promo_service):
    _create(promo_service, code="SAVE10")

    ok = promo_service.check("save10")
    bad = promo_service.check("NOPE")

    assert ok["is_valid"] is True and ok["promo_code"]["code"] == "SAVE10"
    assert bad["is_valid"] is False and bad["promo_code"] is None
    assert "NOPE" in bad["error_message"]


def test_record_usage_increments_and_logs(promo_service, users):
    _create(promo_service, code="SAVE10")
    promo = promo_service.validate("SAVE10")

    promo_service.record_usage(promo, user_id=1, discount_amount=Decimal("2.50"), order_total=Decimal("25.00"))

    assert promo.current_usage_count == 1
    usages = promo_service.list_usages(promo.id, 1, 10)
    assert usages["total_count"] == 1
    assert usages["items"][0]["discount_amount"] == Decimal("2.50")
    assert usages["items"][0]["promo_code"] == "SAVE10"


def test_last_redemption_goes_to_exactly_one_caller(session_factory, users):
    setup = session_factory()
    _create(PromoCodeService(setup), code="LAST", usage_limit=1)
    setup.close()

    first_db, second_db = session_factory(), session_factory()
    first, second = PromoCodeService(first_db), PromoCodeService(second_db)

    # oba widza wolne miejsce
    promo_a = first.validate("LAST")
    promo_b = second.validate("LAST")

    first.record_usage(promo_a, user_id=1, discount_amount=Decimal("1.00"), order_total=Decimal("10.00"))
    with pytest.raises(PromoUsageLimitExceeded):
        second.record_usage(promo_b, user_id=2, discount_amount=Decimal("1.00"), order_total=Decimal("10.00"))

    check_db = session_factory()
    result = PromoCodeService(check_db).get_promo_code_by_code("LAST")
    assert result["current_usage_count"] == 1
    assert PromoCodeService(check_db).list_usages(result["id"], 1, 10)["total_count"] == 1

    for s in (first_db, second_db, check_db):
        s.close()


def test_update_promo_code(promo_service):
    promo = _create(promo_service, code="SAVE10")

    updated = promo_service.update_promo_code(
        promo["id"], PromoCodeUpdate(code="save15", discount_percentage=Decimal("15"), usage_limit=3)
    )

    assert updated["code"] == "SAVE15"
    assert updated["discount_percentage"] == Decimal("15")
    assert updated["usage_limit"] == 3
    assert updated["is_active"] is True


def test_update_to_taken_code(promo_service):
    _create(promo_service, code="A1")
    other = _create(promo_service, code="B2")

    with pytest.raises(DuplicatePromoCode):
        promo_service.update_promo_code(other["id"], PromoCodeUpdate(code="a1"))


def test_delete_and_lookup(promo_service):
    promo = _create(promo_service, code="GONE")
    promo_service.delete_promo_code(promo["id"])

    with pytest.raises(PromoCodeNotFound):
        promo_service.get_promo_code(promo["id"])
    with pytest.raises(PromoCodeNotFound):
        promo_service.get_promo_code_by_code("gone")
    with pytest.raises(PromoInvalid):
        promo_service.validate("GONE")


def test_list_promo_codes_paged(promo_service):
    for i in range(5):
        _create(promo_service, code=f"CODE{i}")

    page = promo_service.list_promo_codes(page=2, page_size=2)

    assert page["total_count"] == 5
    assert page["total_pages"] == 3
    assert len(page["items"]) == 2
    assert page["has_next_page"] and page["has_previous_page"]
