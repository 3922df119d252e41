import csv
import sys
import logging

from models import LedgerError
from payments_engine import PaymentsEngine

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
    stream=sys.stderr,
)

OUTPUT_HEADER = "client,available,held,total,locked"


def main(argv=None):
    argv = sys.argv if argv is None else argv
    if len(argv) != 2:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        sys.exit(1)

    filepath = argv[1]
    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(filepath)
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        print(f"Cannot read {filepath}: {e}", file=sys.stderr)
        sys.exit(1)
    except LedgerError as e:
        print(f"Aborting, corrupt input stream: {e}", file=sys.stderr)
        sys.exit(1)

    print(OUTPUT_HEADER)
    for client_id in sorted(accounts.keys()):
        print(",".join(accounts[client_id].as_row()))


if __name__ == "__main__":
    main()
