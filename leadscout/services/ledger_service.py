"""
Credit ledger - the only path that changes a company's credit balance.

Every change writes the new balance and appends a CreditTransaction in the
caller's transaction. Methods flush but never commit.
"""
import uuid
import logging
from dataclasses import dataclass
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.core.exceptions import NotFoundError, InsufficientCreditsError, ValidationError
from leadscout.models.company import Company
from leadscout.models.ledger import CreditTransaction, TransactionType
from leadscout.repositories.company_repo import CompanyRepository
from leadscout.repositories.ledger_repo import CreditTransactionRepository

logger = logging.getLogger(__name__)


@dataclass
class LedgerCheck:
    company_id: uuid.UUID
    balance: int
    replayed_balance: int
    entries: int
    mismatched_entries: List[int]

    @property
    def consistent(self) -> bool:
        return self.balance == self.replayed_balance and not self.mismatched_entries


class CreditLedger:
    """Balance changes and the append-only transaction log."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.company_repo = CompanyRepository(session)
        self.transaction_repo = CreditTransactionRepository(session)

    async def deduct(
        self,
        company_id: uuid.UUID,
        amount: int,
        description: str,
        related_purchase_id: Optional[uuid.UUID] = None
    ) -> CreditTransaction:
        """Take credits for usage. Raises InsufficientCreditsError when the balance cannot cover it."""
        self._check_amount(amount)
        company = await self._load(company_id)

        if company.credits_remaining < amount:
            raise InsufficientCreditsError(company.credits_remaining, amount)

        if not await self.company_repo.apply_credit_delta(company_id, -amount):
            # Another writer got there first
            company = await self._load(company_id)
            raise InsufficientCreditsError(company.credits_remaining, amount)

        return await self._record(company_id, TransactionType.USAGE, -amount, description, related_purchase_id=related_purchase_id)

    async def add(
        self,
        company_id: uuid.UUID,
        amount: int,
        type: str,
        description: str,
        external_ref: Optional[str] = None
    ) -> CreditTransaction:
        """Credit the balance (allocation, purchase or refund)."""
        self._check_amount(amount)
        if type not in TransactionType.CREDITS:
            raise ValidationError(f"Cannot add credits with type '{type}'", field="type")
        await self._load(company_id)

        await self.company_repo.apply_credit_delta(company_id, amount)
        return await self._record(company_id, type, amount, description, external_ref=external_ref)

    async def balance(self, company_id: uuid.UUID) -> int:
        company = await self._load(company_id)
        return company.credits_remaining

    async def history(self, company_id: uuid.UUID) -> List[CreditTransaction]:
        await self._load(company_id)
        return await self.transaction_repo.history(company_id)

    async def replay_balance(self, company_id: uuid.UUID) -> int:
        return await self.transaction_repo.sum_amounts(company_id)

    async def verify(self, company_id: uuid.UUID) -> LedgerCheck:
        """Replay the log and compare against the stored balance and every balance_after."""
        company = await self._load(company_id)
        entries = await self.transaction_repo.history(company_id)

        running = 0
        mismatched = []
        for entry in entries:
            running += entry.amount
            if entry.balance_after != running:
                mismatched.append(entry.id)

        check = LedgerCheck(
            company_id=company_id,
            balance=company.credits_remaining,
            replayed_balance=running,
            entries=len(entries),
            mismatched_entries=mismatched,
        )
        if not check.consistent:
            logger.error(
                f"Ledger mismatch for company {company_id}: balance={check.balance} "
                f"replayed={check.replayed_balance} bad_entries={mismatched}"
            )
        return check

    async def _record(
        self,
        company_id: uuid.UUID,
        type: str,
        amount: int,
        description: str,
        related_purchase_id: Optional[uuid.UUID] = None,
        external_ref: Optional[str] = None
    ) -> CreditTransaction:
        # Re-read after the relative UPDATE so balance_after is what the row holds
        company = await self._load(company_id)
        entry = CreditTransaction(
            company_id=company_id,
            type=type,
            amount=amount,
            balance_after=company.credits_remaining,
            related_purchase_id=related_purchase_id,
            external_ref=external_ref,
            description=description,
        )
        entry = await self.transaction_repo.append(entry)
        logger.info(f"Ledger {type} {amount:+d} for company {company_id}, balance {entry.balance_after}")
        return entry

    async def _load(self, company_id: uuid.UUID) -> Company:
        company = await self.company_repo.get_for_update(company_id)
        if not company:
            raise NotFoundError("Company", str(company_id))
        return company

    @staticmethod
    def _check_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Credit amount must be a positive integer", field="amount")
