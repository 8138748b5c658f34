"""
Spreadsheet import and export of guest lists.

Import reads the first sheet of an .xlsx (openpyxl) or .xls (xlrd) file with
the columns HOSPITALITY (or SALA), COGNOME and NOME, plus optional TAVOLO,
CHECK_IN and DATA_CHECK_IN. Export writes the same columns back so an
exported file can be re-imported.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import date, datetime
from io import BytesIO
from typing import Any

import xlrd
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from hospitality.constants import (
    EXPORT_COLUMNS,
    EXPORT_NO,
    EXPORT_SHEET_NAME,
    EXPORT_UNKNOWN_ROOM,
    EXPORT_YES,
    IMPORT_ALLOWED_EXTENSIONS,
    IMPORT_CHECK_IN_AT_COLUMN,
    IMPORT_CHECK_IN_COLUMN,
    IMPORT_ERROR_PREVIEW,
    IMPORT_NAME_COLUMN,
    IMPORT_ROOM_COLUMNS,
    IMPORT_SURNAME_COLUMNS,
    IMPORT_TABLE_COLUMN,
    IMPORT_TRUTHY_VALUES,
)
from hospitality.datetime_utils import as_utc, utcnow
from hospitality.logging_config import get_logger
from hospitality.schemas import ImportResult
from hospitality.services.guest_service import GuestService
from hospitality.services.import_history_service import ImportHistoryService
from hospitality.services.room_service import RoomService
from hospitality.validation import ValidationError

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]


def _cell_text(value: Any) -> str | None:
    """Trimmed text of a cell; integral floats (xlrd numbers) lose the ``.0``."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _first_present(row: dict[str, Any], columns: tuple[str, ...]) -> Any:
    for column in columns:
        if row.get(column) not in (None, ""):
            return row[column]
    return None


def _parse_check_in_at(value: Any) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return as_utc(datetime(value.year, value.month, value.day))
    try:
        return as_utc(datetime.fromisoformat(str(value).strip().replace("Z", "+00:00")))
    except ValueError:
        return None


def read_rows(content: bytes, file_name: str) -> list[tuple[int, dict[str, Any]]]:
    """
    Decode the first sheet into ``(spreadsheet_row_number, {header: value})``
    pairs. Header names are trimmed, so ``"COGNOME "`` reads as ``COGNOME``.
    Blank rows are skipped.
    """
    if file_name.lower().endswith(".xls"):
        book = xlrd.open_workbook(file_contents=content)
        sheet = book.sheet_by_index(0)
        raw = []
        for index in range(sheet.nrows):
            values = []
            for col, cell in enumerate(sheet.row(index)):
                if cell.ctype == xlrd.XL_CELL_DATE:
                    values.append(xlrd.xldate.xldate_as_datetime(cell.value, book.datemode))
                else:
                    values.append(sheet.cell_value(index, col))
            raw.append(values)
    else:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
        try:
            sheet = workbook.worksheets[0]
            raw = [list(row) for row in sheet.iter_rows(values_only=True)]
        finally:
            workbook.close()

    if not raw:
        return []

    headers = [str(h).strip() if h is not None else "" for h in raw[0]]
    rows = []
    for offset, values in enumerate(raw[1:], start=2):
        if all(v in (None, "") for v in values):
            continue
        rows.append((offset, {h: v for h, v in zip(headers, values) if h}))
    return rows


class ImportExportService:
    def __init__(
        self,
        room_service: RoomService,
        guest_service: GuestService,
        history_service: ImportHistoryService,
    ):
        self.room_service = room_service
        self.guest_service = guest_service
        self.history_service = history_service

    def import_guests(
        self,
        content: bytes,
        file_name: str,
        user_id: uuid.UUID,
        progress: ProgressCallback | None = None,
    ) -> ImportResult:
        """
        Validate every row, create missing rooms, then insert all accepted
        guests in one batch. Accepted rows share the fate of the batch.
        """
        report = progress or (lambda value: None)
        report(0)

        try:
            if not file_name.lower().endswith(IMPORT_ALLOWED_EXTENSIONS):
                raise ValidationError("Formato file non supportato. Usa .xlsx o .xls")
            rows = read_rows(content, file_name)
            if not rows:
                raise ValidationError("File Excel vuoto o formato non riconosciuto")
            self._check_columns(rows[0][1])
        except Exception as e:
            logger.warning(f"Import of '{file_name}' rejected: {e}")
            return ImportResult(
                success=0,
                failed=1,
                total=0,
                errors=[f"Errore lettura file: {str(e) or 'errore sconosciuto'}"],
            )
        report(10)

        room_map = {room.name.upper(): room.id for room in self.room_service.get_all_rooms()}
        created_rooms: list[str] = []
        report(20)

        errors: list[str] = []
        batch: list[dict[str, Any]] = []
        for index, (row_number, row) in enumerate(rows):
            try:
                batch.append(self._prepare_row(row, room_map, created_rooms, user_id))
            except Exception as e:
                errors.append(f"Riga {row_number}: {str(e) or 'errore sconosciuto'}")
            report(20 + int(index / len(rows) * 60))

        report(85)
        success = 0
        if batch:
            try:
                self.guest_service.bulk_create_guests(batch)
                success = len(batch)
            except Exception as e:
                logger.error(f"Bulk insert for '{file_name}' failed: {e}")
                errors.append(f"Errore inserimento database: {str(e) or 'errore sconosciuto'}")
        report(95)

        total = len(rows)
        failed = total - success
        try:
            self.history_service.save_import_history(
                user_id, file_name, total, success, failed, errors
            )
        except Exception as e:
            logger.error(f"Could not save import history for '{file_name}': {e}")
        report(100)

        return ImportResult(
            success=success,
            failed=failed,
            total=total,
            errors=errors[:IMPORT_ERROR_PREVIEW],
            created_rooms=created_rooms,
        )

    @staticmethod
    def _check_columns(first_row: dict[str, Any]) -> None:
        if not any(column in first_row for column in IMPORT_ROOM_COLUMNS):
            raise ValidationError('Colonna "HOSPITALITY" mancante nel file Excel')
        if not any(column.strip() in first_row for column in IMPORT_SURNAME_COLUMNS):
            raise ValidationError('Colonna "COGNOME" mancante nel file Excel')
        if IMPORT_NAME_COLUMN not in first_row:
            raise ValidationError('Colonna "NOME" mancante nel file Excel')

    def _prepare_row(
        self,
        row: dict[str, Any],
        room_map: dict[str, uuid.UUID],
        created_rooms: list[str],
        user_id: uuid.UUID,
    ) -> dict[str, Any]:
        room_name = _cell_text(_first_present(row, IMPORT_ROOM_COLUMNS))
        last_name = _cell_text(row.get(IMPORT_SURNAME_COLUMNS[0]))
        first_name = _cell_text(row.get(IMPORT_NAME_COLUMN))

        if not room_name:
            raise ValidationError("manca il nome della sala")
        if not last_name:
            raise ValidationError("manca il cognome")
        if not first_name:
            raise ValidationError("manca il nome")

        key = room_name.upper()
        room_id = room_map.get(key)
        if room_id is None:
            room = self.room_service.create_room(key)
            room_id = room_map[key] = room.id
            created_rooms.append(key)

        guest = {
            "room_id": room_id,
            "first_name": first_name,
            "last_name": last_name,
            "table_number": _cell_text(row.get(IMPORT_TABLE_COLUMN)),
            "checked_in": False,
        }
        check_in = _cell_text(row.get(IMPORT_CHECK_IN_COLUMN))
        if check_in and check_in.upper() in IMPORT_TRUTHY_VALUES:
            guest["checked_in"] = True
            guest["checked_in_at"] = _parse_check_in_at(row.get(IMPORT_CHECK_IN_AT_COLUMN)) or utcnow()
            guest["checked_in_by"] = user_id
        return guest

    def export_guests(self, room_id: uuid.UUID | None = None) -> tuple[bytes, str]:
        """Workbook bytes and the download file name ``report_accessi_<date>.xlsx``."""
        rooms = {room.id: room.name for room in self.room_service.get_all_rooms()}
        guests = self.guest_service.get_all_guests(room_id)

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = EXPORT_SHEET_NAME

        for col, header in enumerate(EXPORT_COLUMNS, 1):
            cell = sheet.cell(row=1, column=col, value=header)
            cell.font = Font(bold=True, color="FFFFFF")
            cell.fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
            cell.alignment = Alignment(horizontal="center", vertical="center")

        for row_number, guest in enumerate(guests, 2):
            values = (
                rooms.get(guest.room_id, EXPORT_UNKNOWN_ROOM),
                guest.last_name,
                guest.first_name,
                guest.table_number or "",
                EXPORT_YES if guest.checked_in else EXPORT_NO,
                as_utc(guest.checked_in_at).isoformat() if guest.checked_in_at else "",
            )
            for col, value in enumerate(values, 1):
                sheet.cell(row=row_number, column=col, value=value)

        for col, column in enumerate(sheet.columns, 1):
            width = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            sheet.column_dimensions[get_column_letter(col)].width = min(width + 2, 50)

        output = BytesIO()
        workbook.save(output)
        file_name = f"report_accessi_{utcnow().date().isoformat()}.xlsx"
        logger.info(f"Exported {len(guests)} guests to {file_name}")
        return output.getvalue(), file_name
