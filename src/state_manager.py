import dataclasses
from typing import Dict, Optional

from models import TransactionRecord, ClientAccount, AccountSnapshot


class StateManager:
    """
    Keyed stores owned by the ledger.
    Holds client accounts and the deposit/withdrawal history used for dispute lookups.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, TransactionRecord] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def store_transaction(self, record: TransactionRecord) -> None:
        """Store deposit or withdrawal for duplicate detection and dispute lookups."""
        self._transactions[record.transaction_id] = record

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        """Retrieve stored transaction by ID."""
        return self._transactions.get(transaction_id)

    def copy_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        record = self._transactions.get(transaction_id)
        return dataclasses.replace(record) if record is not None else None

    def snapshot_accounts(self) -> Dict[int, AccountSnapshot]:
        """Return detached copies of all accounts (for final output)."""
        return {client_id: account.snapshot() for client_id, account in self._accounts.items()}
