# Overview: Batched inserts for bulk create endpoints and spreadsheet imports.

"""
Bulk insert

Rows are validated up front by the calling service, then inserted in
batches of BULK_BATCH_SIZE with one commit per batch. When a batch fails
the remaining batches are abandoned; batches already committed stay.
Callers only learn how many rows went in, not which ones.
"""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import classify_db_error
from ..extensions import db
from ..validation import ValidationError


class BulkInsertError(Exception):
    """A batch failed after `inserted` rows were already committed."""

    def __init__(self, message: str, *, inserted: int, status: int, kind: str):
        super().__init__(message)
        self.inserted = inserted
        self.status = status
        self.kind = kind


def prepare_rows(rows: Sequence, build: Callable[[dict], object]) -> list:
    """
    Run `build` over every row and collect the results.

    `build` returns a model instance, or None to skip the row (duplicate).
    Validation errors are re-raised with the 1-based row number so
    nothing is written when any row is bad.
    """
    if not isinstance(rows, (list, tuple)):
        raise ValidationError("Expected an array of records")
    if not rows:
        raise ValidationError("No records provided")

    records = []
    for index, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            raise ValidationError(f"Row {index}: expected an object")
        try:
            record = build(row)
        except ValidationError as e:
            raise ValidationError(f"Row {index}: {e}") from e
        if record is not None:
            records.append(record)
    return records


def insert_in_batches(records: Iterable, *, label: str, batch_size: int | None = None) -> int:
    """Insert `records` batch by batch; returns the inserted count."""
    size = batch_size or current_app.config.get("BULK_BATCH_SIZE", 50)
    inserted = 0
    batch = []

    def flush():
        nonlocal inserted
        try:
            db.session.add_all(batch)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            info = classify_db_error(e)
            current_app.logger.warning(
                "Bulk %s insert stopped after %d rows: %s", label, inserted, info.kind
            )
            raise BulkInsertError(info.message, inserted=inserted, status=info.status, kind=info.kind) from e
        inserted += len(batch)
        batch.clear()

    for record in records:
        batch.append(record)
        if len(batch) >= size:
            flush()
    if batch:
        flush()

    current_app.logger.info("Bulk %s insert: %d rows", label, inserted)
    return inserted
