import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Iterator, Optional

from models import Transaction, TransactionType, MalformedTransaction, AMOUNT_PRECISION, MAX_AMOUNT

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1
AMOUNT_DECIMAL_PLACES = 4


def read_transactions(
    filepath: str,
    on_rejected: Optional[Callable[[Dict[str, str], MalformedTransaction], None]] = None,
) -> Iterator[Transaction]:
    """
    Lazily read CSV rows and yield parsed transactions in file order.
    Malformed rows are logged and skipped; on_rejected is called for each of them.
    """
    with open(filepath, "r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f, skipinitialspace=True)
        for row in reader:
            try:
                yield parse_row(row)
            except MalformedTransaction as e:
                logger.warning(f"Failed to parse row {row}: {e}")
                if on_rejected is not None:
                    on_rejected(row, e)


def parse_row(row: Dict[str, Optional[str]]) -> Transaction:
    """Parse CSV row into Transaction, raising MalformedTransaction on invalid input."""
    normalized = {
        k.strip().lower(): (v or "").strip()
        for k, v in row.items()
        if k is not None
    }

    try:
        transaction_type = TransactionType(normalized["type"].lower())
    except KeyError:
        raise MalformedTransaction("missing type") from None
    except ValueError:
        raise MalformedTransaction(f"unknown type {normalized['type']!r}") from None

    client_id = _parse_int(normalized, "client", MAX_CLIENT_ID)
    transaction_id = _parse_int(normalized, "tx", MAX_TRANSACTION_ID)
    amount = _parse_amount(normalized.get("amount", ""))

    if transaction_type.carries_amount and amount is None:
        raise MalformedTransaction(f"{transaction_type.value} requires an amount")
    if not transaction_type.carries_amount and amount is not None:
        raise MalformedTransaction(f"{transaction_type.value} must not carry an amount")

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_int(normalized: Dict[str, str], field: str, maximum: int) -> int:
    raw = normalized.get(field, "")
    if not raw:
        raise MalformedTransaction(f"missing {field}")
    try:
        value = int(raw)
    except ValueError:
        raise MalformedTransaction(f"{field} is not an integer: {raw!r}") from None
    if not 0 <= value <= maximum:
        raise MalformedTransaction(f"{field} out of range: {value}")
    return value


def _parse_amount(raw: str) -> Optional[Decimal]:
    if not raw:
        return None
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise MalformedTransaction(f"unparsable amount {raw!r}") from None

    if not amount.is_finite():
        raise MalformedTransaction(f"amount must be finite: {raw!r}")
    if amount < 0:
        raise MalformedTransaction(f"negative amount {raw!r}")
    if amount >= MAX_AMOUNT:
        raise MalformedTransaction(f"amount out of range: {raw!r}")
    if amount != amount.quantize(AMOUNT_PRECISION):
        raise MalformedTransaction(f"amount has more than {AMOUNT_DECIMAL_PLACES} decimal places: {raw!r}")
    return amount
