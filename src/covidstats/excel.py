from __future__ import annotations

import logging
from pathlib import Path

from openpyxl import Workbook, load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from covidstats.models import StatsResult
from covidstats.utils import ensure_output_dir, is_number

logger = logging.getLogger(__name__)

SHEET_NAME = "Countries"

COLUMN_MAPPING = {
    "Country": "country",
    "Last Checked": "last_checked",
    "Confirmed": "confirmed",
    "Deaths": "deaths",
    "Recovered": "recovered",
}
CHANGE_HEADER = "Confirmed Change"
HEADERS = [*COLUMN_MAPPING, CHANGE_HEADER]


class StatsWorkbook:
    """Keep one row per country in an Excel tracking sheet.

    Refreshing a country overwrites its stat cells in place and records how much
    ``Confirmed`` moved since the previous refresh. Columns the workbook carries
    beyond ``HEADERS`` (notes, owners...) are never touched.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def update(self, results: list[StatsResult]) -> dict[str, int]:
        book = self._open()
        sheet = book[SHEET_NAME]
        columns = self._ensure_headers(sheet)
        rows = self._country_rows(sheet, columns["Country"])

        counts = {"added": 0, "updated": 0}
        for result in results:
            key = _country_key(result.country)
            if not key:
                logger.warning("Skipping result without a country name")
                continue
            row_idx = rows.get(key)
            if row_idx is None:
                row_idx = sheet.max_row + 1
                rows[key] = row_idx
                counts["added"] += 1
            else:
                counts["updated"] += 1
            self._write_row(sheet, row_idx, result, columns)

        ensure_output_dir(self.path)
        book.save(self.path)
        logger.info(
            "Workbook %s: %s added, %s updated", self.path, counts["added"], counts["updated"]
        )
        return counts

    def _open(self) -> Workbook:
        if not self.path.exists():
            book = Workbook()
            book.active.title = SHEET_NAME
            book.active.append(HEADERS)
            return book
        book = load_workbook(self.path)
        if SHEET_NAME not in book.sheetnames:
            raise ValueError(f"Workbook {self.path} missing '{SHEET_NAME}' sheet")
        return book

    def _ensure_headers(self, sheet: Worksheet) -> dict[str, int]:
        columns: dict[str, int] = {}
        for idx, cell in enumerate(sheet[1], start=1):
            if cell.value is not None and str(cell.value).strip():
                columns[str(cell.value).strip()] = idx
        next_col = max(columns.values(), default=0) + 1
        for header in HEADERS:
            if header not in columns:
                sheet.cell(row=1, column=next_col, value=header)
                columns[header] = next_col
                next_col += 1
        return columns

    def _country_rows(self, sheet: Worksheet, country_col: int) -> dict[str, int]:
        rows: dict[str, int] = {}
        for row_idx in range(2, sheet.max_row + 1):
            key = _country_key(sheet.cell(row=row_idx, column=country_col).value)
            if key and key not in rows:
                rows[key] = row_idx
        return rows

    def _write_row(
        self, sheet: Worksheet, row_idx: int, result: StatsResult, columns: dict[str, int]
    ) -> None:
        confirmed_cell = sheet.cell(row=row_idx, column=columns["Confirmed"])
        previous = confirmed_cell.value
        values = result.to_csv_row()
        for header, attr in COLUMN_MAPPING.items():
            sheet.cell(row=row_idx, column=columns[header]).value = values[attr]

        change = None
        if is_number(previous) and is_number(result.confirmed):
            change = result.confirmed - previous
        sheet.cell(row=row_idx, column=columns[CHANGE_HEADER]).value = change


def _country_key(value: object) -> str | None:
    if value is None:
        return None
    key = str(value).strip().casefold()
    return key or None
