import sys
import os
from decimal import Decimal

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models import Transaction, TransactionType, MalformedTransaction
from transaction_reader import parse_row, read_transactions


def row(type_, client, tx, amount=None):
    values = {"type": type_, "client": client, "tx": tx}
    if amount is not None:
        values["amount"] = amount
    return values


class TestParseRow:
    def test_deposit(self):
        transaction = parse_row(row("deposit", "1", "10", "2.5"))
        assert transaction == Transaction(TransactionType.DEPOSIT, client_id=1, transaction_id=10, amount=Decimal("2.5"))

    def test_type_is_case_insensitive(self):
        assert parse_row(row("Withdrawal", "1", "2", "1")).transaction_type == TransactionType.WITHDRAWAL
        assert parse_row(row("CHARGEBACK", "1", "2", "")).transaction_type == TransactionType.CHARGEBACK

    def test_whitespace_is_trimmed(self):
        transaction = parse_row({" type ": " dispute ", " client": " 3 ", "tx ": " 4", " amount": " "})
        assert transaction == Transaction(TransactionType.DISPUTE, client_id=3, transaction_id=4)

    def test_missing_amount_column_for_dispute(self):
        transaction = parse_row({"type": "resolve", "client": "1", "tx": "1", "amount": None})
        assert transaction.amount is None

    def test_boundary_ids(self):
        transaction = parse_row(row("deposit", "65535", "4294967295", "0"))
        assert transaction.client_id == 65535
        assert transaction.transaction_id == 4294967295
        assert transaction.amount == Decimal("0")

    def test_four_decimal_places_accepted(self):
        assert parse_row(row("deposit", "1", "1", "0.0001")).amount == Decimal("0.0001")
        assert parse_row(row("deposit", "1", "1", "1.50000")).amount == Decimal("1.5")

    def test_largest_amount_accepted(self):
        amount = parse_row(row("deposit", "1", "1", "999999999999999999999999.9999")).amount
        assert amount == Decimal("999999999999999999999999.9999")

    @pytest.mark.parametrize("values", [
        row("transfer", "1", "1", "1"),
        {"client": "1", "tx": "1", "amount": "1"},
        row("deposit", "", "1", "1"),
        row("deposit", "abc", "1", "1"),
        row("deposit", "65536", "1", "1"),
        row("deposit", "-1", "1", "1"),
        row("deposit", "1", "4294967296", "1"),
        row("deposit", "1", "1.5", "1"),
        row("deposit", "1", "1", ""),
        row("withdrawal", "1", "1"),
        row("deposit", "1", "1", "-5"),
        row("deposit", "1", "1", "ten"),
        row("deposit", "1", "1", "NaN"),
        row("deposit", "1", "1", "Infinity"),
        row("deposit", "1", "1", "1.00001"),
        row("deposit", "1", "1", "1E+40"),
        row("deposit", "1", "1", "1000000000000000000000000"),
        row("dispute", "1", "1", "5"),
    ])
    def test_malformed_rows_rejected(self, values):
        with pytest.raises(MalformedTransaction):
            parse_row(values)


class TestReadTransactions:
    def test_reads_lazily_in_order(self, tmp_path):
        csv_file = tmp_path / "input.csv"
        csv_file.write_text('\n'.join([
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "withdrawal, 1, 2, 0.5",
            "dispute, 1, 1,",
            "resolve, 1, 1",
        ]))

        transactions = read_transactions(str(csv_file))
        first = next(transactions)
        assert first.transaction_type == TransactionType.DEPOSIT

        remaining = list(transactions)
        assert [t.transaction_type for t in remaining] == [
            TransactionType.WITHDRAWAL,
            TransactionType.DISPUTE,
            TransactionType.RESOLVE,
        ]

    def test_malformed_rows_reported_and_skipped(self, tmp_path):
        csv_file = tmp_path / "input.csv"
        csv_file.write_text('\n'.join([
            "type,client,tx,amount",
            "deposit,1,1,-3",
            "deposit,1,2,3",
            "bogus,1,3,3",
        ]))
        rejected = []

        transactions = list(read_transactions(str(csv_file), on_rejected=lambda r, e: rejected.append(e)))

        assert [t.transaction_id for t in transactions] == [2]
        assert len(rejected) == 2
        assert all(isinstance(e, MalformedTransaction) for e in rejected)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            list(read_transactions(str(tmp_path / "missing.csv")))
