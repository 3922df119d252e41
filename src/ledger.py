import logging
from decimal import localcontext
from typing import Dict, Optional

from models import (
    Transaction,
    TransactionType,
    TransactionRecord,
    DisputeState,
    ClientAccount,
    AccountSnapshot,
    AMOUNT_CONTEXT,
    ProcessingResult,
    DuplicateTransactionId,
    InsufficientFunds,
)
from state_manager import StateManager

logger = logging.getLogger(__name__)


class Ledger:
    """
    Applies transactions to client accounts, one at a time, in input order.

    Deposits move through NORMAL -> DISPUTED -> NORMAL | CHARGED_BACK.
    Records that cannot be applied are dropped and reported as IGNORED;
    only a reused deposit/withdrawal id raises.
    """

    def __init__(self):
        self._state = StateManager()

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single transaction.

        Returns:
            SUCCESS: Balances and/or dispute state changed
            IGNORED: Dropped with no effect (locked account, insufficient funds,
                unknown or mismatched transaction, illegal dispute transition)

        Raises:
            DuplicateTransactionId: a deposit or withdrawal reuses a stored id
        """
        if transaction.transaction_type.carries_amount:
            if self._state.has_transaction(transaction.transaction_id):
                raise DuplicateTransactionId(transaction.transaction_id)
            account = self._state.get_or_create_account(transaction.client_id)
        else:
            account = self._state.get_account(transaction.client_id)
            if account is None:
                logger.warning(f"{transaction}: client {transaction.client_id} has no account, ignoring")
                return ProcessingResult.IGNORED

        if account.locked:
            logger.info(f"{transaction}: account {account.client_id} is locked, ignoring")
            return ProcessingResult.IGNORED

        with localcontext(AMOUNT_CONTEXT):
            match transaction.transaction_type:
                case TransactionType.DEPOSIT:
                    return self._handle_deposit(account, transaction)
                case TransactionType.WITHDRAWAL:
                    return self._handle_withdrawal(account, transaction)
                case TransactionType.DISPUTE:
                    return self._handle_dispute(account, transaction)
                case TransactionType.RESOLVE:
                    return self._handle_resolve(account, transaction)
                case TransactionType.CHARGEBACK:
                    return self._handle_chargeback(account, transaction)
                case _:
                    return ProcessingResult.IGNORED

    def snapshot(self) -> Dict[int, AccountSnapshot]:
        return self._state.snapshot_accounts()

    def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        return self._state.copy_transaction(transaction_id)

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        account.credit(transaction.amount)
        self._state.store_transaction(TransactionRecord.from_transaction(transaction))
        return ProcessingResult.SUCCESS

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        if transaction.amount > account.available:
            error = InsufficientFunds(account.client_id, transaction.amount, account.available)
            logger.info(f"Withdrawal tx {transaction.transaction_id}: insufficient funds ({error})")
            return ProcessingResult.IGNORED

        account.debit(transaction.amount)
        self._state.store_transaction(TransactionRecord.from_transaction(transaction))
        return ProcessingResult.SUCCESS

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_original(transaction, DisputeState.NORMAL)
        if original is None:
            return ProcessingResult.IGNORED

        account.hold(original.amount)
        original.dispute_state = DisputeState.DISPUTED
        return ProcessingResult.SUCCESS

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_original(transaction, DisputeState.DISPUTED)
        if original is None:
            return ProcessingResult.IGNORED

        account.release_hold(original.amount)
        original.dispute_state = DisputeState.NORMAL
        return ProcessingResult.SUCCESS

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> ProcessingResult:
        original = self._find_original(transaction, DisputeState.DISPUTED)
        if original is None:
            return ProcessingResult.IGNORED

        account.remove_held(original.amount)
        account.lock()
        original.dispute_state = DisputeState.CHARGED_BACK
        return ProcessingResult.SUCCESS

    def _find_original(self, transaction: Transaction, expected_state: DisputeState) -> Optional[TransactionRecord]:
        """Look up the deposit a dispute-family record refers to, or None if the transition is illegal."""
        kind = transaction.transaction_type.value.capitalize()
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            logger.warning(f"{kind} for tx {transaction.transaction_id}: transaction not found")
            return None

        if not original.is_disputable:
            logger.warning(f"{kind} for tx {transaction.transaction_id}: only deposits can be disputed (got {original.transaction_type.value})")
            return None

        if original.client_id != transaction.client_id:
            logger.warning(f"{kind} for tx {transaction.transaction_id}: client mismatch (expected {original.client_id}, got {transaction.client_id})")
            return None

        if original.dispute_state != expected_state:
            logger.info(f"{kind} for tx {transaction.transaction_id}: transaction is {original.dispute_state.value}, expected {expected_state.value}")
            return None

        return original
