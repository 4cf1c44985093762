# Overview: Reads uploaded CSV / JSON / XLSX files into lists of row dicts for bulk import.

"""
Spreadsheet import

Templates use title-case headers ("Product Name", "Phone Number");
headers are folded to the camelCase keys the JSON API takes
("productName", "phoneNumber"), so an uploaded sheet and a JSON array
go through the same bulk create path.

Blank cells are dropped from each row and rows with no values at all
are skipped.
"""

from __future__ import annotations

import csv
import io
import json
import re
import zipfile

from .validation import ValidationError


XLSX_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}

_WORD_SPLIT = re.compile(r"[\s_\-]+")


def header_key(header) -> str:
    """'Product Name' -> 'productName'; camelCase headers pass through."""
    words = [w for w in _WORD_SPLIT.split(str(header or "").strip()) if w]
    if not words:
        return ""
    first = words[0]
    if len(words) == 1:
        return first[:1].lower() + first[1:]
    return first.lower() + "".join(w[:1].upper() + w[1:].lower() for w in words[1:])


def _clean(row: dict) -> dict:
    cleaned = {}
    for header, value in row.items():
        key = header_key(header)
        if not key or value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                continue
        cleaned[key] = value
    return cleaned


def _read_xlsx(stream) -> list[dict]:
    from openpyxl import load_workbook
    from openpyxl.utils.exceptions import InvalidFileException

    try:
        wb = load_workbook(stream, data_only=True, read_only=True)
    except (InvalidFileException, zipfile.BadZipFile) as e:
        raise ValidationError("Failed to parse upload") from e
    try:
        data = list(wb.active.values)
    finally:
        wb.close()
    if not data:
        return []
    headers = [str(h) if h is not None else "" for h in data[0]]
    return [
        {headers[i]: row[i] for i in range(min(len(headers), len(row)))}
        for row in data[1:]
    ]


def read_rows(file_storage) -> list[dict]:
    """
    Parse an uploaded werkzeug FileStorage by extension.

    Raises ValidationError for unsupported or unreadable files.
    """
    filename = file_storage.filename or ""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""

    try:
        if ext == "csv":
            stream = io.StringIO(file_storage.stream.read().decode("utf-8-sig"))
            raw_rows = list(csv.DictReader(stream))
        elif ext == "json":
            raw_rows = json.load(file_storage.stream)
            if isinstance(raw_rows, dict):
                raw_rows = raw_rows.get("rows", [])
        elif ext in XLSX_EXTENSIONS:
            raw_rows = _read_xlsx(io.BytesIO(file_storage.stream.read()))
        else:
            raise ValidationError("Unsupported file format (use .csv, .json or .xlsx)")
    except ValidationError:
        raise
    except (UnicodeDecodeError, ValueError, KeyError, OSError) as e:
        raise ValidationError("Failed to parse upload") from e

    if not isinstance(raw_rows, list):
        raise ValidationError("Expected an array of records")

    rows = []
    for raw in raw_rows:
        if not isinstance(raw, dict):
            raise ValidationError("Expected an array of records")
        cleaned = _clean(raw)
        if cleaned:
            rows.append(cleaned)
    return rows
