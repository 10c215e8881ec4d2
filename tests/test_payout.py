"""
Tests for the weekly payout batch.
"""
import uuid
from datetime import datetime
from decimal import Decimal

import pytest

from leadscout.core.exceptions import NotFoundError
from leadscout.models.payout import Payout, PayoutStatus
from leadscout.models.scout import Scout
from leadscout.repositories.payout_repo import PayoutRepository
from leadscout.services.payout_service import PayoutBatchProcessor, Outcomes, iso_week_key

from conftest import make_scout

RUN = "2026-W42"


@pytest.fixture
def processor(session_factory, settings, locks, transfers, notifier) -> PayoutBatchProcessor:
    return PayoutBatchProcessor(session_factory, settings, locks, transfers, notifier)


async def _reload(session_factory, scout_id) -> Scout:
    async with session_factory() as session:
        return await session.get(Scout, scout_id)


async def _payouts(session_factory, scout_id):
    async with session_factory() as session:
        return await PayoutRepository(session).list_by_scout(scout_id)


class TestWeeklyPayouts:
    async def test_eligible_scout_is_paid(self, session, session_factory, processor, transfers, notifier):
        scout, user = await make_scout(session, pending=Decimal("25.00"))

        result = await processor.process_weekly_payouts(RUN)

        assert result.succeeded == 1
        assert result.total_disbursed == Decimal("25.00")
        scout = await _reload(session_factory, scout.id)
        assert scout.pending_earnings == Decimal("0.00")
        assert scout.total_earnings == Decimal("25.00")
        assert scout.last_payout_at is not None

        payouts = await _payouts(session_factory, scout.id)
        assert len(payouts) == 1
        payout = payouts[0]
        assert payout.status == PayoutStatus.COMPLETED
        assert payout.amount == Decimal("25.00")
        assert payout.external_transfer_id == "tr_0001"
        assert payout.completed_at is not None

        assert transfers.calls[0]["amount"] == 2500
        assert transfers.calls[0]["destination"] == scout.payout_account_ref
        assert transfers.calls[0]["idempotency_key"] == str(payout.id)
        assert notifier.types_for(user.id) == ["payout_completed"]

    async def test_below_threshold_not_selected(self, session, processor, transfers):
        await make_scout(session, pending=Decimal("19.99"))

        result = await processor.process_weekly_payouts(RUN)

        assert result.processed == 0
        assert transfers.calls == []

    async def test_one_failure_does_not_stop_batch(self, session, session_factory, processor, transfers, notifier):
        good_one, _ = await make_scout(session, pending=Decimal("30.00"))
        bad, bad_user = await make_scout(session, pending=Decimal("40.00"))
        good_two, _ = await make_scout(session, pending=Decimal("20.00"))
        transfers.failing.add(bad.payout_account_ref)

        result = await processor.process_weekly_payouts(RUN)

        assert result.processed == 3
        assert result.succeeded == 2
        assert result.failed == 1
        assert result.total_disbursed == Decimal("50.00")

        bad = await _reload(session_factory, bad.id)
        assert bad.pending_earnings == Decimal("40.00")
        assert bad.total_earnings == Decimal("0.00")
        failed = (await _payouts(session_factory, bad.id))[0]
        assert failed.status == PayoutStatus.FAILED
        assert failed.failure_reason == "account closed"
        assert notifier.types_for(bad_user.id) == ["payout_failed"]

        for scout_id in (good_one.id, good_two.id):
            assert (await _reload(session_factory, scout_id)).pending_earnings == Decimal("0.00")

    async def test_transfer_timeout_is_a_failure(self, session, session_factory, processor, transfers):
        scout, _ = await make_scout(session, pending=Decimal("25.00"))
        transfers.hanging.add(scout.payout_account_ref)

        result = await processor.process_weekly_payouts(RUN)

        assert result.failed == 1
        assert result.outcomes[0].reason == "Transfer timed out after 0.2s"
        assert (await _reload(session_factory, scout.id)).pending_earnings == Decimal("25.00")

    async def test_unexpected_processor_error_fails_payout(self, session, session_factory, processor, transfers, notifier):
        scout, user = await make_scout(session, pending=Decimal("25.00"))
        transfers.crashing.add(scout.payout_account_ref)

        result = await processor.process_weekly_payouts(RUN)

        assert result.failed == 1
        outcome = result.outcomes[0]
        assert outcome.reason == "connection reset"
        payouts = await _payouts(session_factory, scout.id)
        assert [(p.status, p.failure_reason) for p in payouts] == [(PayoutStatus.FAILED, "connection reset")]
        assert outcome.payout_id == payouts[0].id
        assert (await _reload(session_factory, scout.id)).pending_earnings == Decimal("25.00")
        assert notifier.types_for(user.id) == ["payout_failed"]

    async def test_incomplete_onboarding_is_ineligible(self, session, session_factory, processor, transfers):
        scout, _ = await make_scout(session, pending=Decimal("30.00"), onboarded=False)

        result = await processor.process_weekly_payouts(RUN)

        assert result.ineligible == 1
        assert transfers.calls == []
        assert await _payouts(session_factory, scout.id) == []
        assert (await _reload(session_factory, scout.id)).pending_earnings == Decimal("30.00")


class TestPayoutIdempotency:
    async def test_rerun_of_same_week_is_skipped(self, session, session_factory, processor, transfers):
        scout, _ = await make_scout(session, pending=Decimal("25.00"))
        await processor.process_weekly_payouts(RUN)

        # New earnings arrive before someone reruns the same week
        async with session_factory() as other:
            fresh = await other.get(Scout, scout.id)
            fresh.pending_earnings = Decimal("22.00")
            other.add(fresh)
            await other.commit()

        result = await processor.process_weekly_payouts(RUN)

        assert result.skipped == 1
        assert result.outcomes[0].reason == "already_settled"
        assert len(transfers.calls) == 1
        assert (await _reload(session_factory, scout.id)).pending_earnings == Decimal("22.00")

        next_week = await processor.process_weekly_payouts("2026-W43")
        assert next_week.succeeded == 1
        assert len(await _payouts(session_factory, scout.id)) == 2

    async def test_failed_payout_not_retried_in_same_run(self, session, processor, transfers):
        scout, _ = await make_scout(session, pending=Decimal("25.00"))
        transfers.failing.add(scout.payout_account_ref)
        await processor.process_weekly_payouts(RUN)

        transfers.failing.clear()
        outcome = await processor.settle_scout(scout.id, RUN)

        assert outcome.outcome == Outcomes.SKIPPED
        assert len(transfers.calls) == 1

    async def test_processing_payout_is_resumed(self, session, session_factory, processor, transfers):
        scout, _ = await make_scout(session, pending=Decimal("25.00"))
        stuck = Payout(
            scout_id=scout.id, run_key=RUN, amount=Decimal("25.00"),
            status=PayoutStatus.PROCESSING, processed_at=datetime.utcnow(),
        )
        session.add(stuck)
        await session.commit()

        result = await processor.process_weekly_payouts(RUN)

        assert result.succeeded == 1
        assert result.outcomes[0].payout_id == stuck.id
        assert transfers.calls[0]["idempotency_key"] == str(stuck.id)
        payouts = await _payouts(session_factory, scout.id)
        assert len(payouts) == 1
        assert payouts[0].status == PayoutStatus.COMPLETED

    async def test_shortfall_after_transfer_needs_review(self, session, session_factory, processor):
        scout, _ = await make_scout(session, pending=Decimal("25.00"))
        session.add(Payout(scout_id=scout.id, run_key=RUN, amount=Decimal("50.00"), status=PayoutStatus.PENDING))
        await session.commit()

        result = await processor.process_weekly_payouts(RUN)

        assert result.failed == 1
        payout = (await _payouts(session_factory, scout.id))[0]
        assert payout.status == PayoutStatus.FAILED
        assert payout.external_transfer_id is not None
        assert payout.failure_reason == "Payout amount exceeds pending earnings"
        assert (await _reload(session_factory, scout.id)).pending_earnings == Decimal("25.00")


class TestManualSettlement:
    async def test_settle_single_scout(self, session, session_factory, processor):
        scout, _ = await make_scout(session, pending=Decimal("21.00"))

        outcome = await processor.settle_scout(scout.id, RUN)

        assert outcome.outcome == Outcomes.SUCCEEDED
        assert outcome.amount == Decimal("21.00")
        assert len(await processor.list_payouts(scout.id)) == 1

    async def test_settle_unknown_scout(self, processor):
        with pytest.raises(NotFoundError):
            await processor.settle_scout(uuid.uuid4(), RUN)

    async def test_settle_below_threshold_is_skipped(self, session, processor):
        scout, _ = await make_scout(session, pending=Decimal("5.00"))
        outcome = await processor.settle_scout(scout.id, RUN)
        assert outcome.outcome == Outcomes.SKIPPED
        assert outcome.reason == "below_threshold"


class TestRunKey:
    def test_iso_week_key(self):
        assert iso_week_key(datetime(2026, 10, 19)) == "2026-W43"
        assert iso_week_key(datetime(2026, 1, 1)) == "2026-W01"
        assert iso_week_key(datetime(2027, 1, 1)) == "2026-W53"

