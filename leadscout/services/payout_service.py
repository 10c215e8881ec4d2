"""
Payout service - weekly settlement of scout earnings.

Each scout is settled on its own: claim a Payout row for the run, call the
transfer processor outside any transaction, then reconcile. A failure for
one scout is recorded on its Payout and never stops the batch.
"""
import uuid
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Callable, Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.config import Settings
from leadscout.core.exceptions import NotFoundError, ExternalServiceError, InsufficientEarningsError
from leadscout.core.locks import EntityLocks
from leadscout.models.payout import Payout, PayoutStatus
from leadscout.models.scout import Scout
from leadscout.repositories.payout_repo import PayoutRepository
from leadscout.repositories.scout_repo import ScoutRepository
from leadscout.schemas.notification import PayoutCompletedNotification, PayoutFailedNotification
from leadscout.services.commission import round_money, to_minor_units
from leadscout.services.integrations.base import TransferProcessor
from leadscout.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)


class Outcomes:
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    INELIGIBLE = "ineligible"
    SKIPPED = "skipped"


def iso_week_key(moment: Optional[datetime] = None) -> str:
    """Run key for the ISO week containing moment, e.g. 2026-W42."""
    year, week, _ = (moment or datetime.utcnow()).isocalendar()
    return f"{year}-W{week:02d}"


@dataclass
class ScoutPayoutOutcome:
    scout_id: uuid.UUID
    outcome: str
    amount: Decimal = Decimal("0.00")
    payout_id: Optional[uuid.UUID] = None
    transfer_id: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class PayoutBatchResult:
    run_key: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    outcomes: List[ScoutPayoutOutcome] = field(default_factory=list)

    def _count(self, outcome: str) -> int:
        return len([o for o in self.outcomes if o.outcome == outcome])

    @property
    def processed(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return self._count(Outcomes.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self._count(Outcomes.FAILED)

    @property
    def ineligible(self) -> int:
        return self._count(Outcomes.INELIGIBLE)

    @property
    def skipped(self) -> int:
        return self._count(Outcomes.SKIPPED)

    @property
    def total_disbursed(self) -> Decimal:
        return sum(
            (o.amount for o in self.outcomes if o.outcome == Outcomes.SUCCEEDED),
            Decimal("0.00")
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "run_key": self.run_key,
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "ineligible": self.ineligible,
            "skipped": self.skipped,
            "total_disbursed": str(self.total_disbursed),
        }


class PayoutBatchProcessor:
    """Drives scouts' pending earnings through external transfers."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        settings: Settings,
        locks: EntityLocks,
        transfers: TransferProcessor,
        notifier: NotificationDispatcher
    ):
        self.session_factory = session_factory
        self.settings = settings
        self.locks = locks
        self.transfers = transfers
        self.notifier = notifier
        self.threshold = round_money(settings.PAYOUT_THRESHOLD)

    async def process_weekly_payouts(self, run_key: Optional[str] = None) -> PayoutBatchResult:
        """Settle every scout whose pending earnings reached the threshold."""
        run_key = run_key or iso_week_key()
        result = PayoutBatchResult(run_key=run_key, started_at=datetime.utcnow())

        async with self.session_factory() as session:
            candidates = await ScoutRepository(session).get_payout_candidates(self.threshold)
            scout_ids = [scout.id for scout in candidates]

        logger.info(f"Payout run {run_key}: {len(scout_ids)} scouts with pending >= €{self.threshold}")

        semaphore = asyncio.Semaphore(max(1, self.settings.PAYOUT_MAX_CONCURRENCY))

        async def run_one(scout_id: uuid.UUID) -> ScoutPayoutOutcome:
            async with semaphore:
                try:
                    return await self._settle(scout_id, run_key)
                except Exception as e:
                    logger.exception(f"Payout run {run_key}: scout {scout_id} errored")
                    return ScoutPayoutOutcome(scout_id=scout_id, outcome=Outcomes.FAILED, reason=str(e))

        result.outcomes = list(await asyncio.gather(*(run_one(scout_id) for scout_id in scout_ids)))
        result.finished_at = datetime.utcnow()
        self._log_summary(result)
        return result

    async def settle_scout(self, scout_id: uuid.UUID, run_key: Optional[str] = None) -> ScoutPayoutOutcome:
        """Settle one scout now (manual trigger). Same idempotency rules as the batch."""
        async with self.session_factory() as session:
            if not await ScoutRepository(session).get(scout_id):
                raise NotFoundError("Scout", str(scout_id))
        return await self._settle(scout_id, run_key or iso_week_key())

    async def list_payouts(self, scout_id: uuid.UUID) -> List[Payout]:
        async with self.session_factory() as session:
            return await PayoutRepository(session).list_by_scout(scout_id)

    async def _settle(self, scout_id: uuid.UUID, run_key: str) -> ScoutPayoutOutcome:
        async with self.locks.hold(("scout", scout_id)):
            claim = await self._claim(scout_id, run_key)
            if isinstance(claim, ScoutPayoutOutcome):
                return claim
            payout, destination, user_id = claim

            transfer_id = None
            reason = None
            try:
                transfer_id = await asyncio.wait_for(
                    self.transfers.create_transfer(
                        destination,
                        to_minor_units(payout.amount),
                        {"scout_id": str(scout_id), "payout_id": str(payout.id), "run_key": run_key},
                        idempotency_key=str(payout.id),
                    ),
                    timeout=self.settings.PAYOUT_TRANSFER_TIMEOUT_SECONDS,
                )
            except asyncio.TimeoutError:
                reason = f"Transfer timed out after {self.settings.PAYOUT_TRANSFER_TIMEOUT_SECONDS:g}s"
            except ExternalServiceError as e:
                reason = e.reason
            except Exception as e:
                logger.exception(f"Transfer for payout {payout.id} raised unexpectedly")
                reason = str(e) or type(e).__name__

            if transfer_id:
                outcome = await self._complete(payout, transfer_id)
            else:
                outcome = await self._fail(payout, reason)

        if outcome.outcome == Outcomes.SUCCEEDED:
            await self.notifier.dispatch(user_id, PayoutCompletedNotification(
                payout_id=payout.id, amount=payout.amount
            ))
        else:
            await self.notifier.dispatch(user_id, PayoutFailedNotification(
                payout_id=payout.id, amount=payout.amount, reason=outcome.reason or "unknown"
            ))
        return outcome

    async def _claim(self, scout_id: uuid.UUID, run_key: str):
        """
        Find or create this run's Payout and mark it processing.
        Returns (payout, destination, user_id) or a final outcome.
        """
        async with self.session_factory() as session:
            scout_repo = ScoutRepository(session)
            payout_repo = PayoutRepository(session)

            scout: Scout = await scout_repo.get_for_update(scout_id)
            if not scout:
                raise NotFoundError("Scout", str(scout_id))
            payout = await payout_repo.get_for_run(scout_id, run_key)

            if payout and payout.is_terminal:
                return ScoutPayoutOutcome(
                    scout_id=scout_id, outcome=Outcomes.SKIPPED, amount=payout.amount,
                    payout_id=payout.id, reason="already_settled"
                )

            if not scout.onboarding_complete or not scout.payout_account_ref:
                logger.info(f"Payout run {run_key}: scout {scout_id} has not completed payout onboarding")
                return ScoutPayoutOutcome(
                    scout_id=scout_id, outcome=Outcomes.INELIGIBLE, amount=scout.pending_earnings,
                    reason="Payout account onboarding incomplete"
                )

            if payout is None:
                amount = round_money(scout.pending_earnings)
                if amount < self.threshold:
                    return ScoutPayoutOutcome(
                        scout_id=scout_id, outcome=Outcomes.SKIPPED, amount=amount, reason="below_threshold"
                    )
                try:
                    payout = await payout_repo.create({
                        "scout_id": scout_id,
                        "run_key": run_key,
                        "amount": amount,
                        "status": PayoutStatus.PENDING,
                    })
                    await session.commit()
                except IntegrityError:
                    # Another worker claimed this slot
                    await session.rollback()
                    return ScoutPayoutOutcome(scout_id=scout_id, outcome=Outcomes.SKIPPED, reason="already_claimed")
            else:
                logger.info(f"Payout run {run_key}: resuming {payout.status} payout {payout.id} for scout {scout_id}")

            payout = await payout_repo.update(payout, {
                "status": PayoutStatus.PROCESSING,
                "processed_at": datetime.utcnow(),
            })
            await session.commit()
            return payout, scout.payout_account_ref, scout.user_id

    async def _complete(self, payout: Payout, transfer_id: str) -> ScoutPayoutOutcome:
        now = datetime.utcnow()
        async with self.session_factory() as session:
            scout_repo = ScoutRepository(session)
            payout_repo = PayoutRepository(session)
            record = await payout_repo.get_for_update(payout.id)

            if not await scout_repo.settle_earnings(payout.scout_id, payout.amount, now):
                await session.rollback()
                error = InsufficientEarningsError()
                logger.error(
                    f"Transfer {transfer_id} sent but scout {payout.scout_id} no longer has "
                    f"€{payout.amount} pending; payout {payout.id} needs manual review"
                )
                record = await payout_repo.get_for_update(payout.id)
                await payout_repo.update(record, {
                    "status": PayoutStatus.FAILED,
                    "external_transfer_id": transfer_id,
                    "failure_reason": error.message,
                })
                await session.commit()
                return ScoutPayoutOutcome(
                    scout_id=payout.scout_id, outcome=Outcomes.FAILED, amount=payout.amount,
                    payout_id=payout.id, transfer_id=transfer_id, reason=error.message
                )

            await payout_repo.update(record, {
                "status": PayoutStatus.COMPLETED,
                "external_transfer_id": transfer_id,
                "completed_at": now,
                "failure_reason": None,
            })
            await session.commit()

        logger.info(f"Payout {payout.id}: €{payout.amount} sent to scout {payout.scout_id} ({transfer_id})")
        return ScoutPayoutOutcome(
            scout_id=payout.scout_id, outcome=Outcomes.SUCCEEDED, amount=payout.amount,
            payout_id=payout.id, transfer_id=transfer_id
        )

    async def _fail(self, payout: Payout, reason: Optional[str]) -> ScoutPayoutOutcome:
        reason = reason or "Transfer failed"
        async with self.session_factory() as session:
            payout_repo = PayoutRepository(session)
            record = await payout_repo.get_for_update(payout.id)
            await payout_repo.update(record, {"status": PayoutStatus.FAILED, "failure_reason": reason})
            await session.commit()

        logger.warning(f"Payout {payout.id} for scout {payout.scout_id} failed: {reason}")
        return ScoutPayoutOutcome(
            scout_id=payout.scout_id, outcome=Outcomes.FAILED, amount=payout.amount,
            payout_id=payout.id, reason=reason
        )

    def _log_summary(self, result: PayoutBatchResult) -> None:
        logger.info(
            f"Payout run {result.run_key} complete: {result.succeeded} succeeded, {result.failed} failed, "
            f"{result.ineligible} ineligible, {result.skipped} skipped, €{result.total_disbursed} disbursed"
        )
        for outcome in result.outcomes:
            if outcome.outcome == Outcomes.FAILED:
                logger.warning(f"  scout {outcome.scout_id}: {outcome.reason}")
