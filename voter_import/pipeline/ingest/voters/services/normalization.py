from __future__ import annotations

import io
import math
from pathlib import Path
from typing import IO, Iterator

import pandas as pd

from voter_import.core.errors import MissingIdentifierError
from voter_import.domain.voters.schema import COLUMN_SPECS, FIELD_NAMES, IDENTIFIER_FIELD
from voter_import.domain.voters.versioning import BatchKey
from voter_import.pipeline.ingest.voters.models import ArchiveRecord, RawVoterRow
from voter_import.pipeline.ingest.voters.services.dates import parse_date

VoterFileSource = Path | bytes | IO[bytes]


def clean_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def clean_integer(value: object) -> int | None:
    text = clean_text(value)
    if not text:
        return None
    numeric = pd.to_numeric(text, errors="coerce")
    if pd.isna(numeric):
        return None
    number = float(numeric)
    # Fractional values are not valid house numbers or districts.
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def transform_row(row: RawVoterRow, batch_key: BatchKey) -> ArchiveRecord:
    identifier = row.get(IDENTIFIER_FIELD)
    if identifier is None:
        raise MissingIdentifierError("Voter row is missing its VRCNUM identifier.")

    fields: dict[str, object] = {}
    for spec in COLUMN_SPECS:
        if spec.name == IDENTIFIER_FIELD:
            continue
        raw_value = row.get(spec.name)
        if spec.value_type == "integer":
            number = clean_integer(raw_value)
            if number is not None:
                fields[spec.name] = number
        elif spec.value_type == "date":
            fields[spec.name] = parse_date(clean_text(raw_value))
        else:
            fields[spec.name] = clean_text(raw_value)

    return ArchiveRecord(
        voter_id=clean_text(identifier),
        batch_key=batch_key,
        fields=fields,
    )


def _open_source(source: VoterFileSource) -> Path | IO[bytes]:
    if isinstance(source, bytes):
        return io.BytesIO(source)
    return source


def iter_voter_rows(
    source: VoterFileSource,
    *,
    chunk_size: int = 10000,
    encoding: str = "utf-8",
) -> Iterator[dict[str, str | None]]:
    """Stream a headerless voter file as row dicts, one pandas chunk at a time."""
    try:
        reader = pd.read_csv(
            _open_source(source),
            header=None,
            names=list(FIELD_NAMES),
            dtype=str,
            keep_default_na=False,
            index_col=False,
            chunksize=max(1, chunk_size),
            encoding=encoding,
        )
    except pd.errors.EmptyDataError:
        return
    with reader:
        for chunk in reader:
            for row in chunk.to_dict(orient="records"):
                yield {
                    str(key): None if pd.isna(value) else str(value)
                    for key, value in row.items()
                }
