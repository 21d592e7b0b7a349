"""Response parsing for JSON and CSV table sources.

Responses are classified by their declared content type into a
``DataFormat`` and converted into a uniform tabular shape: records in
source order plus, for CSV, the header's column set. JSON columns are left
to the caller, which derives them from the first record.

CSV grammar:
- the first line is the header, split on every comma; each name is trimmed
- every later non-blank line is split on commas outside double quotes
- a double quote opens a quoted span only as the first non-space character
  of a field; elsewhere it is an ordinary character
- fields are trimmed and one layer of surrounding quotes is stripped
- short rows are padded with ``Settings.MISSING_VALUE``; extra fields are dropped
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from ..api.error_handling import ParseError, UnsupportedFormatError
from ..api.transport import RawResponse
from ..config.api import TransportConfig
from ..config.settings import Settings

logger = logging.getLogger(__name__)


class DataFormat(str, Enum):
    """Body formats the parser understands."""

    JSON = "json"
    CSV = "csv"


@dataclass(frozen=True)
class ParsedBody:
    """Records decoded from a body; ``columns`` is None when the format carries no header."""

    records: List[dict]
    columns: Optional[Tuple[str, ...]] = None


def classify_content_type(content_type: Optional[str]) -> DataFormat:
    """Map a Content-Type header value to a DataFormat."""
    declared = (content_type or "").lower()
    if TransportConfig.JSON_CONTENT_TYPE in declared:
        return DataFormat.JSON
    elif TransportConfig.CSV_CONTENT_TYPE in declared:
        return DataFormat.CSV
    raise UnsupportedFormatError(content_type)


def format_for_path(path: Path) -> DataFormat:
    """Pick a DataFormat from a local file's extension."""
    suffix = path.suffix.lower()
    if suffix == ".json":
        return DataFormat.JSON
    elif suffix == ".csv":
        return DataFormat.CSV
    raise UnsupportedFormatError(suffix or str(path))


def parse(raw: RawResponse) -> ParsedBody:
    """Parse a transport response according to its declared content type."""
    data_format = classify_content_type(raw.content_type)
    try:
        text = raw.text()
    except (UnicodeDecodeError, LookupError) as e:
        raise ParseError(f"Could not decode {data_format.value} body from {raw.url}: {e}") from e
    return parse_text(text, data_format)


def parse_body(body: bytes, data_format: DataFormat, encoding: str = TransportConfig.DEFAULT_CHARSET) -> ParsedBody:
    """Parse raw bytes already known to be in ``data_format``."""
    try:
        text = body.decode(encoding)
    except UnicodeDecodeError as e:
        raise ParseError(f"Could not decode {data_format.value} body: {e}") from e
    return parse_text(text, data_format)


def parse_text(text: str, data_format: DataFormat) -> ParsedBody:
    if data_format is DataFormat.JSON:
        return parse_json(text)
    return parse_csv(text)


def parse_json(text: str) -> ParsedBody:
    """Decode a JSON array, or an object whose ``results`` field is the array."""
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e.msg}", line=e.lineno) from e

    records: Any = decoded
    if isinstance(decoded, dict) and "results" in decoded:
        records = decoded["results"]

    if not isinstance(records, list):
        raise ParseError(f"Expected a JSON array of records, got {type(records).__name__}")
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ParseError(f"Record {index} is a {type(record).__name__}, expected an object")

    logger.debug(f"Parsed {len(records)} JSON records")
    return ParsedBody(records=records)


def parse_csv(text: str) -> ParsedBody:
    """Convert CSV text into records keyed by the header's columns."""
    lines = text.split("\n")
    header_line = lines[0].strip()
    if not header_line:
        raise ParseError("CSV body has no header line", line=1)

    header = [name.strip() for name in header_line.split(",")]
    columns = tuple(dict.fromkeys(header))

    records = []
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        values = split_csv_line(line, line_number=line_number)
        records.append(_build_record(header, values))

    logger.debug(f"Parsed {len(records)} CSV records with {len(columns)} columns")
    return ParsedBody(records=records, columns=columns)


def split_csv_line(line: str, line_number: Optional[int] = None) -> List[str]:
    """Split one CSV line on commas that are not inside a double-quoted span.

    A quote opens a span only at the start of a field (after optional
    spaces), so values like ``5'10"`` stay ordinary fields.
    """
    fields = []
    current: List[str] = []
    in_quotes = False
    for char in line:
        if in_quotes:
            current.append(char)
            if char == '"':
                in_quotes = False
        elif char == '"' and not "".join(current).strip():
            in_quotes = True
            current.append(char)
        elif char == ",":
            fields.append(_clean_field("".join(current)))
            current = []
        else:
            current.append(char)

    if in_quotes:
        raise ParseError("Unterminated quoted field", line=line_number)
    fields.append(_clean_field("".join(current)))
    return fields


def _clean_field(raw_field: str) -> str:
    value = raw_field.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def _build_record(header: Sequence[str], values: List[str]) -> dict:
    if len(values) < len(header):
        values = values + [Settings.MISSING_VALUE] * (len(header) - len(values))
    # duplicate header names keep the rightmost value
    return dict(zip(header, values))
