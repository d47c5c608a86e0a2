"""
Service for the coin ledger.
"""

import logging
from dataclasses import dataclass

from repositories.interfaces import ILedgerRepository
from services.exceptions import NotFound, ValidationError

logger = logging.getLogger("plottwist.services.ledger")


@dataclass
class LedgerReconciliation:
    """Comparison of a stored balance with the sum of its ledger entries."""

    user_id: int
    balance: int
    ledger_total: int
    transaction_count: int

    @property
    def consistent(self) -> bool:
        return self.balance == self.ledger_total

    @property
    def discrepancy(self) -> int:
        return self.balance - self.ledger_total


class LedgerService:
    """
    Credits, debits and ledger reporting.

    Each credit or debit changes the balance and appends its transaction in
    a single database transaction.
    """

    def __init__(self, ledger_repo: ILedgerRepository):
        self.ledger_repo = ledger_repo

    def credit(
        self,
        user_id: int,
        amount: int,
        tx_type: str,
        reference_id: int | None = None,
        description: str | None = None,
    ) -> int:
        """Credit coins. Returns the new balance."""
        new_balance = self.ledger_repo.credit(user_id, amount, tx_type, reference_id, description)
        logger.info(f"Credited {amount} to user {user_id} ({tx_type}), balance {new_balance}")
        return new_balance

    def debit(
        self,
        user_id: int,
        amount: int,
        tx_type: str,
        reference_id: int | None = None,
        description: str | None = None,
    ) -> int:
        """
        Debit coins. Returns the new balance.

        Raises:
            InsufficientFunds: If amount exceeds the balance
        """
        new_balance = self.ledger_repo.debit(user_id, amount, tx_type, reference_id, description)
        logger.info(f"Debited {amount} from user {user_id} ({tx_type}), balance {new_balance}")
        return new_balance

    def get_transactions(self, user_id: int, limit: int = 50, offset: int = 0) -> list[dict]:
        if limit <= 0 or limit > 200:
            raise ValidationError("limit must be between 1 and 200")
        if offset < 0:
            raise ValidationError("offset must not be negative")
        return self.ledger_repo.get_transactions(user_id, limit=limit, offset=offset)

    def reconcile(self, user_id: int) -> LedgerReconciliation:
        snapshot = self.ledger_repo.get_ledger_snapshot(user_id)
        if snapshot is None:
            raise NotFound("User not found")
        result = LedgerReconciliation(
            user_id=user_id,
            balance=snapshot["balance"],
            ledger_total=snapshot["ledger_total"],
            transaction_count=snapshot["transaction_count"],
        )
        if not result.consistent:
            logger.error(
                f"Ledger mismatch for user {user_id}: balance={result.balance} "
                f"ledger_total={result.ledger_total}"
            )
        return result

    def find_inconsistencies(self) -> list[dict]:
        return self.ledger_repo.find_inconsistent_users()
