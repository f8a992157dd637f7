"""Parent-label materialization for nested label names."""

from typing import Optional

from label_syncer.lib.logger import get_structured_logger
from label_syncer.models.errors import LabelSyncError
from label_syncer.models.hierarchy import HierarchyPath
from label_syncer.models.results import AncestorReport, OperationFailure
from label_syncer.services.label_directory import LabelDirectoryClient
from label_syncer.storage.label_table import LabelTable

logger = get_structured_logger(__name__)


class HierarchyResolver:
    """
    Makes sure every ancestor of a nested label exists in Gmail and in the sheet.

    One resolver remembers which ancestors it already ensured, so a
    reconciliation pass that shares one instance across all names never
    checks or creates the same parent twice.
    """

    def __init__(self) -> None:
        self.ensured: set[str] = set()

    def ensure_ancestors(
        self,
        name: str,
        table: LabelTable,
        directory: LabelDirectoryClient,
        remote_index: Optional[dict[str, str]] = None,
        local_names: Optional[set[str]] = None,
    ) -> AncestorReport:
        """
        Create missing ancestors of ``name``, shallowest first.

        Each level is attempted independently: a failure is recorded in the
        report and the next level is still tried. Nothing is rolled back.

        Args:
            name: Full label path, e.g. "A/B/C"
            table: Local label store
            directory: Gmail label directory
            remote_index: Gmail name -> ID snapshot; updated in place as
                ancestors are created. Fetched fresh when omitted.
            local_names: Names present in the sheet; updated in place.
                Read from the table when omitted.

        Returns:
            AncestorReport of what was created where

        Raises:
            ValueError: If the name has an empty path segment
            DirectoryUnavailable: If a fresh Gmail snapshot is needed and fails
        """
        report = AncestorReport()
        path = HierarchyPath.parse(name)

        if not path.is_nested:
            return report

        pending = [ancestor for ancestor in path.ancestors() if ancestor not in self.ensured]
        if not pending:
            return report

        if remote_index is None:
            remote_index = directory.name_index()
        if local_names is None:
            local_names = {row.name for row in table.rows() if not row.is_blank}

        for ancestor in pending:
            try:
                if ancestor not in remote_index:
                    remote_index[ancestor] = directory.create(ancestor)
                    report.created_remote.append(ancestor)
                    logger.info("Created parent label in Gmail", parent=ancestor, child=name)

                if ancestor not in local_names:
                    row = table.append(ancestor, remote_index[ancestor])
                    local_names.add(ancestor)
                    report.added_local.append(ancestor)
                    logger.info("Added parent label to sheet", parent=ancestor, row=row)

                self.ensured.add(ancestor)

            except LabelSyncError as error:
                logger.error("Failed to ensure parent label", parent=ancestor, child=name, error=error)
                report.failures.append(
                    OperationFailure(label_name=ancestor, operation="create parent", message=str(error))
                )

        return report
