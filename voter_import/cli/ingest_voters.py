from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from voter_import.core.errors import VoterImportError
from voter_import.core.logging import configure_logging
from voter_import.core.settings import get_settings
from voter_import.pipeline.ingest.voters.pipeline import ingest_voter_file


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest a headerless voter-registration CSV into SQLite.")
    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Path to the voter file (.csv, no header row).",
    )
    parser.add_argument(
        "--year",
        type=int,
        required=True,
        help="Record entry year of the submitted file.",
    )
    parser.add_argument(
        "--entry-number",
        type=int,
        required=True,
        help="Record entry number within the year.",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to SQLite database file (defaults to VOTER_DB_PATH).",
    )
    parser.add_argument(
        "--buffer-size",
        type=int,
        default=None,
        help="Records per flush (defaults to IMPORT_BUFFER_SIZE).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    configure_logging(settings.import_log_level)
    arguments = parse_args(argv)
    try:
        statistics = ingest_voter_file(
            input_path=arguments.input,
            db_path=arguments.db,
            year=arguments.year,
            record_entry_number=arguments.entry_number,
            buffer_size=arguments.buffer_size,
        )
    except VoterImportError as exc:
        print(json.dumps(exc.to_dict(), indent=2))
        return 1
    print(json.dumps(statistics.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
