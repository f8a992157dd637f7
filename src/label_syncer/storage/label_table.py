"""Local label store: the user-edited sheet of label names and IDs.

The reconciliation logic only talks to the ``LabelTable`` protocol, so it
runs unchanged against a real Google Sheet or an in-memory table.
"""

from typing import Any, Iterable, List, Optional, Protocol, Tuple, runtime_checkable

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from label_syncer.lib.config import SheetConfig, sheet_config
from label_syncer.lib.logger import get_logger
from label_syncer.lib.utils import API_ERRORS, column_letter, rate_limit, retry_with_exponential_backoff
from label_syncer.models.errors import SheetAccessError
from label_syncer.models.label import LocalRow

logger = get_logger(__name__)


@runtime_checkable
class LabelTable(Protocol):
    """Row store with a header offset and two columns: label ID and name.

    Rows are 1-based and include the header rows, matching sheet row numbers.
    """

    header_row: int

    def rows(self) -> List[LocalRow]:
        """All data rows below the header, blank rows included."""
        ...

    def get_name(self, row: int) -> str:
        ...

    def get_id(self, row: int) -> str:
        ...

    def set_name(self, row: int, name: str) -> None:
        ...

    def set_id(self, row: int, label_id: str) -> None:
        ...

    def clear_id(self, row: int) -> None:
        ...

    def append(self, name: str, label_id: str = "") -> int:
        """Add a row after the last used row; returns its row number."""
        ...

    def ensure_header(self) -> None:
        """Write the ID column header."""
        ...


class InMemoryLabelTable:
    """List-backed ``LabelTable`` used in tests."""

    def __init__(
        self,
        entries: Iterable[Tuple[str, str]] = (),
        header_row: int = 1,
        id_header: str = "Label ID",
    ):
        """
        Args:
            entries: Initial (name, label_id) pairs, one per data row
            header_row: Row holding the column headers
            id_header: Header text written by ensure_header
        """
        self.header_row = header_row
        self.id_header = id_header
        self.header: Optional[str] = None
        self._cells: List[List[str]] = [[name or "", label_id or ""] for name, label_id in entries]

    def _slot(self, row: int) -> List[str]:
        if row <= self.header_row:
            raise SheetAccessError(f"Row {row} is inside the header (header row {self.header_row})")

        offset = row - self.header_row - 1
        while len(self._cells) <= offset:
            self._cells.append(["", ""])
        return self._cells[offset]

    @property
    def last_row(self) -> int:
        """Last row holding any value, or the header row if none."""
        for offset in range(len(self._cells) - 1, -1, -1):
            if any(self._cells[offset]):
                return self.header_row + 1 + offset
        return self.header_row

    def rows(self) -> List[LocalRow]:
        return [
            LocalRow(row_index=self.header_row + 1 + offset, name=name, label_id=label_id)
            for offset, (name, label_id) in enumerate(self._cells[: self.last_row - self.header_row])
        ]

    def get_name(self, row: int) -> str:
        return self._slot(row)[0]

    def get_id(self, row: int) -> str:
        return self._slot(row)[1]

    def set_name(self, row: int, name: str) -> None:
        self._slot(row)[0] = name

    def set_id(self, row: int, label_id: str) -> None:
        self._slot(row)[1] = label_id

    def clear_id(self, row: int) -> None:
        self._slot(row)[1] = ""

    def append(self, name: str, label_id: str = "") -> int:
        row = self.last_row + 1
        self._slot(row)[:] = [name, label_id]
        return row

    def ensure_header(self) -> None:
        self.header = self.id_header

    def names(self) -> List[str]:
        """Non-blank names in row order."""
        return [row.name for row in self.rows() if not row.is_blank]

    def as_pairs(self) -> List[Tuple[str, str]]:
        """(name, label_id) for every data row."""
        return [(row.name, row.label_id) for row in self.rows()]


class SheetsLabelTable:
    """``LabelTable`` over a Google Sheets worksheet via the Sheets API v4."""

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        service: Any = None,
        config: Optional[SheetConfig] = None,
    ):
        """
        Args:
            credentials: Valid OAuth2 credentials (ignored when service is given)
            service: Prebuilt Sheets API service resource
            config: Sheet layout (default: module config)
        """
        self.config = config or sheet_config
        if not self.config.spreadsheet_id:
            raise ValueError(
                "No spreadsheet configured. Set LABEL_SYNC_SPREADSHEET_ID "
                "or pass --spreadsheet-id."
            )
        if service is None and credentials is None:
            raise ValueError("Either credentials or a Sheets service is required")

        self.service = service or build("sheets", "v4", credentials=credentials)
        self.header_row = self.config.header_row
        self._last_row: Optional[int] = None

    @property
    def _values(self) -> Any:
        return self.service.spreadsheets().values()

    @rate_limit()
    @retry_with_exponential_backoff()
    def _execute(self, request: Any) -> dict:
        return request.execute() or {}

    def _call(self, request: Any, action: str) -> dict:
        try:
            return self._execute(request)
        except API_ERRORS as error:
            logger.error(f"Sheets API call failed ({action}): {error}")
            raise SheetAccessError(f"Failed to {action}: {error}") from error

    def _a1(self, row: int, column: int) -> str:
        return f"'{self.config.sheet_name}'!{column_letter(column)}{row}"

    def _read_cell(self, row: int, column: int) -> str:
        result = self._call(
            self._values.get(spreadsheetId=self.config.spreadsheet_id, range=self._a1(row, column)),
            f"read {self._a1(row, column)}",
        )
        values = result.get("values", [])
        if values and values[0]:
            return str(values[0][0])
        return ""

    def _write_cell(self, row: int, column: int, value: str) -> None:
        cell = self._a1(row, column)
        self._call(
            self._values.update(
                spreadsheetId=self.config.spreadsheet_id,
                range=cell,
                valueInputOption="RAW",
                body={"values": [[value]]},
            ),
            f"write {cell}",
        )
        if value and self._last_row is not None and row > self._last_row:
            self._last_row = row

    def rows(self) -> List[LocalRow]:
        first_column = min(self.config.label_id_column, self.config.name_column)
        last_column = max(self.config.label_id_column, self.config.name_column)
        first_row = self.config.first_data_row
        data_range = (
            f"'{self.config.sheet_name}'!"
            f"{column_letter(first_column)}{first_row}:{column_letter(last_column)}"
        )

        result = self._call(
            self._values.get(spreadsheetId=self.config.spreadsheet_id, range=data_range),
            f"read {data_range}",
        )

        id_offset = self.config.label_id_column - first_column
        name_offset = self.config.name_column - first_column

        rows = []
        for offset, values in enumerate(result.get("values", [])):
            cells = [str(value).strip() for value in values]
            cells += [""] * (last_column - first_column + 1 - len(cells))
            rows.append(
                LocalRow(
                    row_index=first_row + offset,
                    name=cells[name_offset],
                    label_id=cells[id_offset],
                )
            )

        # The API trims trailing empty rows, so the last returned row is the last used one
        self._last_row = rows[-1].row_index if rows else self.header_row
        logger.debug(f"Read {len(rows)} rows from sheet '{self.config.sheet_name}'")
        return rows

    def get_name(self, row: int) -> str:
        return self._read_cell(row, self.config.name_column)

    def get_id(self, row: int) -> str:
        return self._read_cell(row, self.config.label_id_column)

    def set_name(self, row: int, name: str) -> None:
        self._write_cell(row, self.config.name_column, name)

    def set_id(self, row: int, label_id: str) -> None:
        self._write_cell(row, self.config.label_id_column, label_id)

    def clear_id(self, row: int) -> None:
        cell = self._a1(row, self.config.label_id_column)
        self._call(
            self._values.clear(spreadsheetId=self.config.spreadsheet_id, range=cell, body={}),
            f"clear {cell}",
        )

    def append(self, name: str, label_id: str = "") -> int:
        if self._last_row is None:
            self.rows()

        row = self._last_row + 1
        self.set_name(row, name)
        if label_id:
            self.set_id(row, label_id)
        self._last_row = row
        logger.debug(f'Appended "{name}" at row {row}')
        return row

    def ensure_header(self) -> None:
        if self.header_row <= 0:
            return
        self._write_cell(self.header_row, self.config.label_id_column, self.config.id_header)

    def hide_id_column(self) -> bool:
        """
        Hide the label ID column. Best-effort: failures are logged, not raised.

        Returns:
            True if the column is now hidden
        """
        try:
            spreadsheet = self._call(
                self.service.spreadsheets().get(
                    spreadsheetId=self.config.spreadsheet_id,
                    fields="sheets.properties",
                ),
                "read sheet properties",
            )
            sheet_id = next(
                sheet["properties"]["sheetId"]
                for sheet in spreadsheet.get("sheets", [])
                if sheet["properties"].get("title") == self.config.sheet_name
            )
            column_index = self.config.label_id_column - 1
            self._call(
                self.service.spreadsheets().batchUpdate(
                    spreadsheetId=self.config.spreadsheet_id,
                    body={
                        "requests": [
                            {
                                "updateDimensionProperties": {
                                    "range": {
                                        "sheetId": sheet_id,
                                        "dimension": "COLUMNS",
                                        "startIndex": column_index,
                                        "endIndex": column_index + 1,
                                    },
                                    "properties": {"hiddenByUser": True},
                                    "fields": "hiddenByUser",
                                }
                            }
                        ]
                    },
                ),
                "hide label ID column",
            )
        except StopIteration:
            logger.error(f"Failed to hide Label ID column: no sheet named '{self.config.sheet_name}'")
            return False
        except SheetAccessError as error:
            logger.error(f"Failed to hide Label ID column: {error}")
            return False

        logger.debug("Label ID column hidden successfully")
        return True
