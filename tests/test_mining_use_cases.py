from datetime import timedelta

import pytest

from conftest import NOW, make_contract
from cryptomine.config.plans import PLAN_CATALOG, PLANS_BY_ID
from cryptomine.core.entities.checkout import PendingCheckout
from cryptomine.core.entities.contract import AccrualMode, Contract
from cryptomine.core.errors import NotFoundError, PaymentError, ValidationError
from cryptomine.core.services.payment_provider import PaymentDetails, PaymentProvider, PaymentReceipt
from cryptomine.core.use_cases.mining_use_cases import (
    DEFAULT_TICKS_PER_DAY,
    accrue_tick,
    base_unit_rate_per_second,
    compute_earnings,
    confirm_payment,
    contract_progress,
    convert_to_base_unit,
    days_elapsed,
    has_active_contracts,
    list_contract_views,
    monthly_projection,
    resolve_plan,
    start_contract,
    total_base_unit_earnings,
    total_daily_rate,
    total_earnings_across_contracts,
    visible_contracts,
)
from cryptomine.infrastructure.payments.stub_provider import StubPaymentProvider


FREE = PLANS_BY_ID["free"]
BASIC = PLANS_BY_ID["basic"]
PRO = PLANS_BY_ID["pro"]
DETAILS = PaymentDetails(crypto_type="BTC", wallet_address="bc1qtest", amount=45)


class DecliningProvider(PaymentProvider):
    async def charge(self, user, plan, details):
        return PaymentReceipt(success=False, amount=0, transaction_id="none", message="Declined")


def test_catalog_ships_four_plans_one_free():
    assert [p.id for p in PLAN_CATALOG] == ["free", "basic", "pro", "enterprise"]
    assert [p.id for p in PLAN_CATALOG if p.is_free] == ["free"]
    assert [p.id for p in PLAN_CATALOG if p.popular] == ["pro"]


def test_resolve_unknown_plan():
    with pytest.raises(NotFoundError):
        resolve_plan(PLANS_BY_ID, "platinum")


def test_free_plan_creates_one_active_contract(contract_repo, user):
    contract = start_contract(contract_repo, user, FREE, now=NOW)

    assert isinstance(contract, Contract)
    stored = contract_repo.list_for_user(user.id)
    assert stored == [contract]
    assert contract.is_active
    assert contract.total_earned == 0
    assert contract.ends_at - contract.started_at == timedelta(days=30)


def test_paid_plan_waits_for_payment(contract_repo, user):
    result = start_contract(contract_repo, user, BASIC, now=NOW)

    assert isinstance(result, PendingCheckout)
    assert result.amount == 45
    assert result.crypto_type == "BTC"
    assert contract_repo.list_for_user(user.id) == []


@pytest.mark.asyncio
async def test_confirm_payment_creates_contract(contract_repo, user):
    contract = await confirm_payment(
        contract_repo, StubPaymentProvider(delay_seconds=0), user, BASIC, DETAILS, now=NOW,
    )

    assert contract_repo.list_for_user(user.id) == [contract]
    assert contract.plan_id == "basic"
    assert contract.ends_at - contract.started_at == timedelta(days=90)


@pytest.mark.asyncio
async def test_declined_payment_commits_nothing(contract_repo, user):
    with pytest.raises(PaymentError, match="Declined"):
        await confirm_payment(contract_repo, DecliningProvider(), user, BASIC, DETAILS, now=NOW)

    assert contract_repo.list_for_user(user.id) == []


@pytest.mark.asyncio
async def test_free_plan_is_not_paid_for(contract_repo, user):
    with pytest.raises(ValidationError):
        await confirm_payment(contract_repo, StubPaymentProvider(delay_seconds=0), user, FREE, DETAILS)


@pytest.mark.asyncio
async def test_basic_plan_scenario(contract_repo, user):
    contract = await confirm_payment(
        contract_repo, StubPaymentProvider(delay_seconds=0), user, BASIC, DETAILS, now=NOW,
    )

    assert compute_earnings(contract, BASIC, NOW) == 0
    assert compute_earnings(contract, BASIC, NOW + timedelta(days=10)) == pytest.approx(172.0)
    assert compute_earnings(contract, BASIC, NOW + timedelta(days=200)) == pytest.approx(1548.0)


def test_earnings_at_start_equal_total_earned(user):
    contract = make_contract(user.id, BASIC, total_earned=3.25)

    assert compute_earnings(contract, BASIC, NOW) == 3.25


def test_earnings_after_end_are_clamped(user):
    contract = make_contract(user.id, PRO, total_earned=1.5)
    expected = PRO.daily_earnings * PRO.duration + 1.5

    assert compute_earnings(contract, PRO, contract.ends_at) == expected
    assert compute_earnings(contract, PRO, contract.ends_at + timedelta(days=1000)) == expected


def test_earnings_non_decreasing_over_time(user):
    contract = make_contract(user.id, BASIC)
    moments = [NOW + timedelta(hours=h) for h in range(0, 24 * 120, 7)]

    values = [compute_earnings(contract, BASIC, moment) for moment in moments]

    assert values == sorted(values)


def test_days_elapsed_floors_partial_days(user):
    contract = make_contract(user.id, BASIC)

    assert days_elapsed(contract, NOW + timedelta(days=1, hours=23)) == 1
    assert days_elapsed(contract, NOW - timedelta(hours=5)) == 0



def test_zulu_timestamps_are_parsed(user):
    contract = make_contract(user.id, BASIC,
                             start_date="2025-01-01T12:00:00.000Z", end_date="2025-04-01T12:00:00.000Z")

    assert contract.started_at == NOW
    assert days_elapsed(contract, NOW + timedelta(days=2, hours=1)) == 2
    assert compute_earnings(contract, BASIC, NOW + timedelta(days=2)) == pytest.approx(34.4)

def test_contract_progress(user):
    contract = make_contract(user.id, BASIC)

    assert contract_progress(contract, BASIC, NOW) == 0
    assert contract_progress(contract, BASIC, NOW + timedelta(days=45)) == pytest.approx(50.0)
    assert contract_progress(contract, BASIC, NOW + timedelta(days=400)) == 100.0


def test_accrue_tick_adds_fraction_of_daily_earnings(contract_repo, user):
    contract_repo.add(make_contract(user.id, BASIC))

    accrue_tick(contract_repo, user, PLANS_BY_ID, now=NOW)
    accrue_tick(contract_repo, user, PLANS_BY_ID, now=NOW)

    [stored] = contract_repo.list_for_user(user.id)
    assert stored.total_earned == pytest.approx(2 * 17.2 / (24 * 60 * 20))
    assert DEFAULT_TICKS_PER_DAY == 28800


def test_legacy_ticks_stack_on_top_of_elapsed_days(contract_repo, user):
    contract_repo.add(make_contract(user.id, FREE))
    # сутки тиков при укороченных сутках из 10 тиков
    for _ in range(10):
        accrue_tick(contract_repo, user, PLANS_BY_ID, ticks_per_day=10, now=NOW)

    [stored] = contract_repo.list_for_user(user.id)
    one_day_later = compute_earnings(stored, FREE, NOW + timedelta(days=1))

    # один день по времени плюс ещё один день из тиков
    assert one_day_later == pytest.approx(0.2)


def test_legacy_total_earned_is_not_clamped(user):
    contract = make_contract(user.id, BASIC, total_earned=10)

    assert compute_earnings(contract, BASIC, contract.ends_at) == pytest.approx(1558.0)


def test_accrue_tick_skips_inactive_and_orphaned(contract_repo, user):
    contract_repo.add(make_contract(user.id, BASIC, id="inactive", is_active=False))
    contract_repo.add(make_contract(user.id, BASIC, id="orphan", plan_id="retired"))

    accrue_tick(contract_repo, user, PLANS_BY_ID, now=NOW)

    assert [c.total_earned for c in contract_repo.list_for_user(user.id)] == [0, 0]


def test_corrected_mode_ignores_ticks_and_clamps(user):
    contract = make_contract(user.id, BASIC, total_earned=100)

    half_day = compute_earnings(contract, BASIC, NOW + timedelta(hours=12), AccrualMode.CORRECTED)
    after_end = compute_earnings(contract, BASIC, contract.ends_at + timedelta(days=5), AccrualMode.CORRECTED)

    assert half_day == pytest.approx(8.6)
    assert after_end == pytest.approx(1548.0)


def test_corrected_tick_completes_expired_contracts(contract_repo, user):
    contract_repo.add(make_contract(user.id, FREE, id="expired"))
    contract_repo.add(make_contract(user.id, BASIC, id="running"))

    accrue_tick(contract_repo, user, PLANS_BY_ID, mode=AccrualMode.CORRECTED, now=NOW + timedelta(days=31))

    stored = {c.id: c for c in contract_repo.list_for_user(user.id)}
    assert not stored["expired"].is_active
    assert stored["running"].is_active
    assert stored["running"].total_earned == 0


def test_total_daily_rate_excludes_inactive(contract_repo, user):
    contract_repo.add(make_contract(user.id, BASIC, id="active"))
    contract_repo.add(make_contract(user.id, PRO, id="stopped"))

    def deactivate(contracts):
        for c in contracts:
            if c.id == "stopped":
                c.is_active = False
        return contracts

    contract_repo.update_for_user(user.id, deactivate)

    assert total_daily_rate(contract_repo, user, PLANS_BY_ID) == pytest.approx(17.2)
    assert has_active_contracts(contract_repo, user)


def test_totals_across_contracts(contract_repo, user):
    contract_repo.add(make_contract(user.id, FREE, id="a"))
    contract_repo.add(make_contract(user.id, BASIC, id="b", total_earned=2))
    later = NOW + timedelta(days=10)

    total = total_earnings_across_contracts(contract_repo, user, PLANS_BY_ID, now=later)

    assert total == pytest.approx(1.0 + 172.0 + 2)
    assert total_base_unit_earnings(contract_repo, user, PLANS_BY_ID, 67500, now=later) == pytest.approx(total / 67500)


def test_orphaned_contracts_are_invisible(contract_repo, user):
    contract_repo.add(make_contract(user.id, BASIC, id="known"))
    contract_repo.add(make_contract(user.id, BASIC, id="orphan", plan_id="retired"))
    later = NOW + timedelta(days=1)

    views = list_contract_views(contract_repo, user, PLANS_BY_ID, unit_price=67500, now=later)

    assert [v.contract.id for v in views] == ["known"]
    assert views[0].earnings == pytest.approx(17.2)
    assert views[0].days_elapsed == 1
    assert total_earnings_across_contracts(contract_repo, user, PLANS_BY_ID, now=later) == pytest.approx(17.2)
    assert total_daily_rate(contract_repo, user, PLANS_BY_ID) == pytest.approx(17.2)
    assert [c.id for c in visible_contracts(contract_repo, user, PLANS_BY_ID)] == ["known"]


def test_convert_to_base_unit():
    assert convert_to_base_unit(135, 67500) == pytest.approx(0.002)
    assert convert_to_base_unit(10, -5) == -2
    with pytest.raises(ValidationError):
        convert_to_base_unit(10, 0)


def test_projections():
    assert monthly_projection(17.3) == pytest.approx(519.0)
    assert base_unit_rate_per_second(86400, 2) == pytest.approx(0.5)


def test_no_contracts_means_no_activity(contract_repo, user):
    assert not has_active_contracts(contract_repo, user)
    assert total_daily_rate(contract_repo, user, PLANS_BY_ID) == 0
    assert total_earnings_across_contracts(contract_repo, user, PLANS_BY_ID, now=NOW) == 0
