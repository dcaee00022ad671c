"""Data ingestion for the data explorer.

This module turns the raw bytes of an uploaded file into a ``Dataset``.
Two formats are supported, chosen by file suffix:

* ``.csv`` -- comma separated text with a mandatory header row.  Fields
  are read as text by pandas and then coerced one by one into typed
  cells (number, then boolean, else text; empty fields become null).
* ``.json`` -- an array of objects, an object holding such an array, or
  a single object treated as a one-row table.

Every failure is reported as ``FormatError`` (bad content, unsupported
suffix) or ``ReadError`` (the bytes could not be read), both carrying a
message suitable for showing to the user.  Parsing is a pure transform;
nothing here touches session state.
"""

from __future__ import annotations

import io
import json
import math
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Union

import pandas as pd
from loguru import logger

from .dataset import NULL, Cell, Dataset, make_row
from .exceptions import FormatError, ReadError

_INTEGER = re.compile(r"^\s*-?\d+\s*$")
_FLOAT = re.compile(r"^\s*-?(\d+\.?|\.\d+|\d+\.\d+)([eE][-+]?\d+)?\s*$")
_BOOLEANS = {"true": True, "false": False}


def _decode(content: bytes, kind: str) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise FormatError(f"Failed to parse {kind}: file is not valid UTF-8 text ({e.reason}).") from e


def coerce_field(raw: Any) -> Cell:
    """Best-effort typing of a single delimited-text field.

    Numeric literals become numbers (``int`` when the literal is
    integral), ``true``/``false`` in any case become booleans, empty
    fields become null and anything else stays text.  A literal that
    overflows a float, such as ``1e400``, stays text.
    """
    if not isinstance(raw, str) or raw == "":
        return NULL
    if _INTEGER.match(raw):
        return Cell.number(int(raw))
    if _FLOAT.match(raw):
        value = float(raw)
        # Literals that overflow to inf stay text, like "inf" itself.
        if math.isfinite(value):
            return Cell.number(value)
        return Cell.text(raw)
    flag = _BOOLEANS.get(raw.strip().lower())
    if flag is not None:
        return Cell.boolean(flag)
    return Cell.text(raw)


def parse_delimited_text(content: bytes) -> Dataset:
    """Parse comma separated bytes into a ``Dataset``.

    The first non-empty line is the header row; blank lines are skipped.
    Rows shorter than the header are padded with nulls, rows longer than
    the header are rejected.

    Parameters
    ----------
    content : bytes
        Raw file content.

    Returns
    -------
    Dataset
        The parsed table.
    """
    text = _decode(content, "CSV")
    try:
        # header=None keeps pandas from guessing an index column, so
        # over-long rows surface as ParserError instead of being absorbed.
        frame = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            na_filter=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError as e:
        raise FormatError("Failed to parse CSV: the file is empty.") from e
    except pd.errors.ParserError as e:
        raise FormatError(f"Failed to parse CSV: {e}") from e

    if frame.empty:
        raise FormatError("Failed to parse CSV: no header row found.")
    records = frame.values.tolist()
    headers = [h if isinstance(h, str) else "" for h in records[0]]
    duplicates = sorted({h for h in headers if headers.count(h) > 1})
    if duplicates:
        raise FormatError(f"Failed to parse CSV: duplicate column names: {', '.join(duplicates)}")

    rows = []
    for record in records[1:]:
        rows.append({header: coerce_field(raw) for header, raw in zip(headers, record)})
    dataset = Dataset(tuple(headers), tuple(make_row(row, headers) for row in rows))
    logger.debug("Parsed CSV: {} rows, {} columns", dataset.row_count, dataset.column_count)
    return dataset


def _extract_records(document: Any) -> List[Any]:
    if isinstance(document, list):
        return document
    if isinstance(document, dict):
        for value in document.values():
            if isinstance(value, list):
                return value
        return [document]
    raise FormatError("Failed to parse JSON: top-level value must be an array or an object.")


def parse_structured(content: bytes) -> Dataset:
    """Parse JSON bytes into a ``Dataset``.

    A top-level array is the row sequence.  For a top-level object the
    first array-valued entry is used as the row sequence; when there is
    none the object itself becomes the only row.  Headers are the keys
    of the first row.  Keys missing from later rows become null and keys
    outside the header set are dropped.
    """
    text = _decode(content, "JSON")
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise FormatError(f"Failed to parse JSON: {e}") from e
    except RecursionError as e:
        raise FormatError("Failed to parse JSON: nesting too deep.") from e

    records = _extract_records(document)
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise FormatError(
                f"Failed to parse JSON: row {index} is a {type(record).__name__}, expected an object."
            )
    if not records:
        raise FormatError("Failed to parse JSON: no rows found, cannot determine column names.")
    headers = list(records[0].keys())
    if not headers:
        raise FormatError("Failed to parse JSON: the first row has no fields.")

    header_set = set(headers)
    dropped = 0
    rows = []
    for record in records:
        dropped += sum(1 for key in record if key not in header_set)
        rows.append(make_row(record, headers))
    if dropped:
        logger.warning("Dropped {} value(s) whose keys are not in the header row", dropped)
    dataset = Dataset(tuple(headers), tuple(rows))
    logger.debug("Parsed JSON: {} rows, {} columns", dataset.row_count, dataset.column_count)
    return dataset


PARSERS: Dict[str, Callable[[bytes], Dataset]] = {
    ".csv": parse_delimited_text,
    ".json": parse_structured,
}


def file_suffix(filename: str) -> str:
    return Path(filename).suffix.lower()


def parser_for(filename: str) -> Callable[[bytes], Dataset]:
    """Return the parser for ``filename`` or raise ``FormatError`` naming its suffix."""
    suffix = file_suffix(filename)
    parser = PARSERS.get(suffix)
    if parser is None:
        shown = suffix or "(no extension)"
        raise FormatError(f"Unsupported file format '{shown}'. Please upload a CSV or JSON file.")
    return parser


def load_file(filename: str, content: bytes) -> Dataset:
    """Parse ``content`` with the parser matching the suffix of ``filename``.

    The suffix is checked before any parsing so unsupported files fail
    fast with a ``FormatError`` naming the rejected extension.
    """
    parser = parser_for(filename)
    logger.info("Parsing {} ({} bytes)", filename, len(content))
    return parser(content)


def read_source(path: Union[str, Path]) -> bytes:
    """Read the raw bytes of ``path``, raising ``ReadError`` on failure."""
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise ReadError(f"Failed to read file '{path}': {e.strerror or e}") from e


def load_path(path: Union[str, Path]) -> Dataset:
    """Read and parse a file from disk."""
    path = Path(path)
    parser = parser_for(path.name)
    content = read_source(path)
    logger.info("Parsing {} ({} bytes)", path.name, len(content))
    return parser(content)
