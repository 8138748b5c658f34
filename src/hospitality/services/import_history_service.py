"""
Import history: one row per spreadsheet import attempt.
"""

from __future__ import annotations

import uuid

from sqlalchemy import select

from hospitality.constants import IMPORT_HISTORY_DEFAULT_LIMIT
from hospitality.db import Store
from hospitality.logging_config import get_logger
from hospitality.models import ImportHistory, Profile
from hospitality.schemas import ImportHistoryRecord
from hospitality.validation import ValidationError

logger = get_logger(__name__)


class ImportHistoryService:
    def __init__(self, store: Store):
        self.store = store

    def save_import_history(
        self,
        imported_by: uuid.UUID | None,
        file_name: str,
        total_rows: int,
        successful_rows: int,
        failed_rows: int,
        errors: list[str] | None = None,
    ) -> ImportHistoryRecord:
        if successful_rows + failed_rows != total_rows:
            raise ValidationError(
                f"Conteggi incoerenti: {successful_rows} + {failed_rows} != {total_rows}"
            )
        with self.store.session() as session:
            row = ImportHistory(
                imported_by=imported_by,
                file_name=file_name,
                total_rows=total_rows,
                successful_rows=successful_rows,
                failed_rows=failed_rows,
                errors=errors or None,
            )
            session.add(row)
            session.flush()
            record = ImportHistoryRecord.model_validate(row)
        logger.info(
            f"Import '{file_name}': {successful_rows}/{total_rows} rows imported, {failed_rows} failed"
        )
        return record

    def get_import_history(self, limit: int = IMPORT_HISTORY_DEFAULT_LIMIT) -> list[ImportHistoryRecord]:
        """Most recent imports first, with the importer's name."""
        with self.store.session() as session:
            results = session.execute(
                select(ImportHistory, Profile.full_name, Profile.email)
                .outerjoin(Profile, Profile.id == ImportHistory.imported_by)
                .order_by(ImportHistory.created_at.desc())
                .limit(limit)
            ).all()
            return [
                ImportHistoryRecord.model_validate(row).model_copy(
                    update={"imported_by_name": full_name or email}
                )
                for row, full_name, email in results
            ]
