import logging
import sys
from typing import Dict, Iterable

from models import Transaction, AccountSnapshot, ProcessingResult, ProcessingStats
from ledger import Ledger
from transaction_reader import read_transactions

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Folds an ordered transaction stream through a single Ledger.
    Records are applied strictly in input order on the calling thread.
    """

    def __init__(self):
        self._ledger = Ledger()
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, AccountSnapshot]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")

        transactions = read_transactions(filepath, on_rejected=lambda row, error: self._stats.record_rejected_row())
        accounts = self.process_transactions(transactions)

        print(
            f"Processed: {self._stats.processed}, "
            f"Ignored: {self._stats.ignored}, "
            f"Rejected rows: {self._stats.rejected_rows}",
            file=sys.stderr
        )

        return accounts

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, AccountSnapshot]:
        """
        Apply already-parsed transactions in order.
        DuplicateTransactionId propagates to the caller and stops processing.
        """
        for transaction in transactions:
            result = self._ledger.apply(transaction)

            if result == ProcessingResult.SUCCESS:
                self._stats.record_success()
            elif result == ProcessingResult.IGNORED:
                self._stats.record_ignored()

        logger.info("Processing complete")
        return self._ledger.snapshot()
