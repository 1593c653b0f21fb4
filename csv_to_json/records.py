"""
Record materialization on top of the tokenizer.

The first row names the fields; every later non-blank row becomes one
``{header: value}`` mapping. Values are kept as text.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .rules import BOM, DEFAULT_DELIMITER, FALLBACK_FIELD_PREFIX
from .tokenizer import tokenize

LOGGER = logging.getLogger(__name__)

Record = Dict[str, str]


@dataclass
class Conversion:
    records: List[Record] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    delimiter: str = DEFAULT_DELIMITER
    sniffed: bool = False


def resolve_headers(header_row: Sequence[str]) -> List[str]:
    """Trim header names; blank ones become ``field_<column number>``."""
    return [
        header.strip() or f"{FALLBACK_FIELD_PREFIX}{column + 1}"
        for column, header in enumerate(header_row)
    ]


def _is_blank(row: Sequence[str]) -> bool:
    return all(cell.strip() == "" for cell in row)


def build(rows: Sequence[Sequence[str]]) -> List[Record]:
    if not rows:
        return []

    headers = resolve_headers(rows[0])
    duplicates = sorted(name for name, count in Counter(headers).items() if count > 1)
    if duplicates:
        # later columns overwrite earlier ones under the same key
        LOGGER.warning("Duplicate header names, last column wins: %s", ", ".join(duplicates))

    records: List[Record] = []
    for row in rows[1:]:
        if _is_blank(row):
            continue
        record: Record = {}
        for column, key in enumerate(headers):
            record[key] = row[column] if column < len(row) else ""
        records.append(record)
    return records


def _strip_bom(text: str) -> str:
    if text.startswith(BOM):
        return text[1:]
    return text


def convert(text: str, delimiter: str = DEFAULT_DELIMITER) -> Conversion:
    """Convert CSV text to records, reporting the fields and delimiter used."""
    if not text or not text.strip():
        return Conversion(delimiter=delimiter)

    table = tokenize(_strip_bom(text), delimiter)
    headers = resolve_headers(table.rows[0]) if table.rows else []
    return Conversion(
        records=build(table.rows),
        fields=list(dict.fromkeys(headers)),
        delimiter=table.delimiter,
        sniffed=table.sniffed,
    )


def csv_to_records(text: str, delimiter: str = DEFAULT_DELIMITER) -> List[Record]:
    return convert(text, delimiter).records
