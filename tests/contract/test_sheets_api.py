"""Contract tests for the Sheets API v4 label table."""

from unittest.mock import MagicMock

import pytest
from googleapiclient.errors import HttpError

from label_syncer.lib.config import SheetConfig
from label_syncer.models.errors import SheetAccessError
from label_syncer.storage.label_table import LabelTable, SheetsLabelTable


@pytest.fixture
def mock_sheets_service():
    """Mock Sheets API service."""
    return MagicMock()


@pytest.fixture
def values_api(mock_sheets_service):
    return mock_sheets_service.spreadsheets.return_value.values.return_value


@pytest.fixture
def sheet(mock_sheets_service):
    return SheetsLabelTable(service=mock_sheets_service, config=SheetConfig(spreadsheet_id="sheet123"))


@pytest.mark.contract
class TestSheetsLabelTableContract:
    """Test spreadsheets.values calls made by SheetsLabelTable."""

    def test_satisfies_protocol(self, sheet):
        assert isinstance(sheet, LabelTable)

    def test_requires_spreadsheet_id(self, mock_sheets_service):
        with pytest.raises(ValueError, match="No spreadsheet configured"):
            SheetsLabelTable(service=mock_sheets_service, config=SheetConfig())

    def test_rows_reads_both_columns_below_header(self, sheet, values_api):
        values_api.get.return_value.execute.return_value = {
            "values": [["Label_1", "Work"], ["", "Personal"], ["Label_3"]]
        }

        rows = sheet.rows()

        values_api.get.assert_called_with(spreadsheetId="sheet123", range="'Labels'!A2:B")
        assert [row.to_dict() for row in rows] == [
            {"row_index": 2, "name": "Work", "label_id": "Label_1"},
            {"row_index": 3, "name": "Personal", "label_id": ""},
            {"row_index": 4, "name": "", "label_id": "Label_3"},
        ]

    def test_rows_of_empty_sheet(self, sheet, values_api):
        values_api.get.return_value.execute.return_value = {}

        assert sheet.rows() == []

    def test_rows_with_swapped_columns(self, mock_sheets_service, values_api):
        config = SheetConfig(spreadsheet_id="sheet123", label_id_column=3, name_column=2)
        sheet = SheetsLabelTable(service=mock_sheets_service, config=config)
        values_api.get.return_value.execute.return_value = {"values": [["Work", "Label_1"]]}

        rows = sheet.rows()

        values_api.get.assert_called_with(spreadsheetId="sheet123", range="'Labels'!B2:C")
        assert rows[0].name == "Work"
        assert rows[0].label_id == "Label_1"

    def test_set_id_writes_raw_value(self, sheet, values_api):
        sheet.set_id(3, "Label_7")

        values_api.update.assert_called_once_with(
            spreadsheetId="sheet123",
            range="'Labels'!A3",
            valueInputOption="RAW",
            body={"values": [["Label_7"]]},
        )

    def test_set_name(self, sheet, values_api):
        sheet.set_name(4, "Old")

        assert values_api.update.call_args.kwargs["range"] == "'Labels'!B4"

    def test_clear_id(self, sheet, values_api):
        sheet.clear_id(3)

        values_api.clear.assert_called_once_with(
            spreadsheetId="sheet123", range="'Labels'!A3", body={}
        )

    def test_get_name(self, sheet, values_api):
        values_api.get.return_value.execute.return_value = {"values": [["Work"]]}

        assert sheet.get_name(2) == "Work"
        values_api.get.assert_called_with(spreadsheetId="sheet123", range="'Labels'!B2")

    def test_get_empty_cell(self, sheet, values_api):
        values_api.get.return_value.execute.return_value = {"range": "'Labels'!A2"}

        assert sheet.get_id(2) == ""

    def test_append_after_last_row(self, sheet, values_api):
        values_api.get.return_value.execute.return_value = {
            "values": [["Label_1", "Work"], ["", "Personal"], ["Label_3"]]
        }

        row = sheet.append("Finance", "Label_9")

        assert row == 5
        ranges = [call.kwargs["range"] for call in values_api.update.call_args_list]
        assert ranges == ["'Labels'!B5", "'Labels'!A5"]

    def test_consecutive_appends(self, sheet, values_api):
        values_api.get.return_value.execute.return_value = {"values": [["Label_1", "Work"]]}

        assert sheet.append("A") == 3
        assert sheet.append("B") == 4
        values_api.get.assert_called_once()

    def test_ensure_header(self, sheet, values_api):
        sheet.ensure_header()

        values_api.update.assert_called_once_with(
            spreadsheetId="sheet123",
            range="'Labels'!A1",
            valueInputOption="RAW",
            body={"values": [["Label ID"]]},
        )

    def test_write_failure_raises(self, sheet, values_api):
        values_api.update.return_value.execute.side_effect = HttpError(
            resp=MagicMock(status=403, reason="Forbidden"), content=b"Forbidden"
        )

        with pytest.raises(SheetAccessError, match="Failed to write 'Labels'!A2"):
            sheet.set_id(2, "Label_1")

    def test_read_timeout_raises(self, sheet, values_api):
        values_api.get.return_value.execute.side_effect = TimeoutError("timed out")

        with pytest.raises(SheetAccessError, match="timed out"):
            sheet.rows()

    def test_hide_id_column(self, sheet, mock_sheets_service):
        spreadsheets = mock_sheets_service.spreadsheets.return_value
        spreadsheets.get.return_value.execute.return_value = {
            "sheets": [
                {"properties": {"sheetId": 0, "title": "Other"}},
                {"properties": {"sheetId": 7, "title": "Labels"}},
            ]
        }

        assert sheet.hide_id_column() is True

        body = spreadsheets.batchUpdate.call_args.kwargs["body"]
        update = body["requests"][0]["updateDimensionProperties"]
        assert update["range"] == {
            "sheetId": 7,
            "dimension": "COLUMNS",
            "startIndex": 0,
            "endIndex": 1,
        }
        assert update["properties"] == {"hiddenByUser": True}

    def test_hide_id_column_missing_sheet(self, sheet, mock_sheets_service):
        spreadsheets = mock_sheets_service.spreadsheets.return_value
        spreadsheets.get.return_value.execute.return_value = {"sheets": []}

        assert sheet.hide_id_column() is False
        spreadsheets.batchUpdate.assert_not_called()
