from dataclasses import dataclass
from decimal import Context, Decimal, localcontext
from enum import Enum
from typing import Optional

AMOUNT_PRECISION = Decimal("0.0001")
# Parsed amounts stay below MAX_AMOUNT; balances are summed at this precision.
MAX_AMOUNT = Decimal(10) ** 24
AMOUNT_CONTEXT = Context(prec=60)


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"

    @property
    def carries_amount(self) -> bool:
        return self in (TransactionType.DEPOSIT, TransactionType.WITHDRAWAL)


class DisputeState(Enum):
    NORMAL = "normal"
    DISPUTED = "disputed"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    SUCCESS = "success"
    IGNORED = "ignored"


class LedgerError(Exception):
    """Base class for errors raised by the ledger."""


class DuplicateTransactionId(LedgerError):
    def __init__(self, transaction_id: int):
        super().__init__(f"transaction id {transaction_id} already used by a deposit or withdrawal")
        self.transaction_id = transaction_id


class InsufficientFunds(LedgerError):
    def __init__(self, client_id: int, requested: Decimal, available: Decimal):
        super().__init__(f"client {client_id}: requested {requested}, available {available}")
        self.client_id = client_id
        self.requested = requested
        self.available = available


class MalformedTransaction(ValueError):
    """Raised at the parse boundary for rows that must never reach the ledger."""


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class TransactionRecord:
    """
    A stored deposit or withdrawal.
    Only deposits carry a dispute_state; withdrawals are kept for id uniqueness.
    """

    transaction_id: int
    client_id: int
    transaction_type: TransactionType
    amount: Decimal
    dispute_state: Optional[DisputeState] = None

    @property
    def is_disputable(self) -> bool:
        return self.dispute_state is not None

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> "TransactionRecord":
        dispute_state = DisputeState.NORMAL if transaction.transaction_type == TransactionType.DEPOSIT else None
        return cls(
            transaction_id=transaction.transaction_id,
            client_id=transaction.client_id,
            transaction_type=transaction.transaction_type,
            amount=transaction.amount,
            dispute_state=dispute_state,
        )


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        with localcontext(AMOUNT_CONTEXT):
            return self.available + self.held

    def credit(self, amount: Decimal) -> None:
        self.available += amount

    def debit(self, amount: Decimal) -> None:
        self.available -= amount

    def hold(self, amount: Decimal) -> None:
        self.available -= amount
        self.held += amount

    def release_hold(self, amount: Decimal) -> None:
        self.held -= amount
        self.available += amount

    def remove_held(self, amount: Decimal) -> None:
        self.held -= amount

    def lock(self) -> None:
        self.locked = True

    def snapshot(self) -> "AccountSnapshot":
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool

    def as_row(self) -> tuple:
        """Render as (client, available, held, total, locked) with 4 fractional digits."""
        return (
            str(self.client_id),
            format_amount(self.available),
            format_amount(self.held),
            format_amount(self.total),
            str(self.locked).lower(),
        )


def format_amount(value: Decimal) -> str:
    with localcontext(AMOUNT_CONTEXT):
        return f"{value.quantize(AMOUNT_PRECISION):f}"


class ProcessingStats:
    """Counters for tracking processing statistics."""

    def __init__(self):
        self.processed = 0
        self.ignored = 0
        self.rejected_rows = 0

    def record_success(self):
        self.processed += 1

    def record_ignored(self):
        self.ignored += 1

    def record_rejected_row(self):
        self.rejected_rows += 1
