"""Spreadsheet layout configuration."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class SheetConfig:
    """Where the label list lives and how its columns are laid out.

    Rows and columns are 1-based, like the Sheets UI.
    """

    spreadsheet_id: str = ""
    sheet_name: str = "Labels"
    header_row: int = 1
    label_id_column: int = 1  # hidden column A
    name_column: int = 2  # column B
    id_header: str = "Label ID"

    @classmethod
    def from_env(cls) -> "SheetConfig":
        """Create config from environment variables."""
        return cls(
            spreadsheet_id=os.getenv("LABEL_SYNC_SPREADSHEET_ID", ""),
            sheet_name=os.getenv("LABEL_SYNC_SHEET_NAME", "Labels"),
            header_row=int(os.getenv("LABEL_SYNC_HEADER_ROW", "1")),
            label_id_column=int(os.getenv("LABEL_SYNC_ID_COLUMN", "1")),
            name_column=int(os.getenv("LABEL_SYNC_NAME_COLUMN", "2")),
        )

    def validate(self) -> None:
        """Validate configuration."""
        if not self.sheet_name:
            raise ValueError("Sheet name cannot be empty")

        if self.header_row < 0:
            raise ValueError("Header row must be non-negative")

        if self.label_id_column <= 0 or self.name_column <= 0:
            raise ValueError("Columns must be positive (1-based)")

        if self.label_id_column == self.name_column:
            raise ValueError("Label ID column and name column must differ")

    @property
    def first_data_row(self) -> int:
        """First row below the header."""
        return self.header_row + 1
