"""Gmail label directory client with rate limiting and error handling."""

from typing import Any, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from label_syncer.lib.config import GmailConfig, gmail_config
from label_syncer.lib.logger import get_logger
from label_syncer.lib.utils import API_ERRORS, Timer, rate_limit, retry_with_exponential_backoff
from label_syncer.models.errors import (
    DirectoryUnavailable,
    LabelNotFound,
    RemoteOperationFailed,
)
from label_syncer.models.label import RemoteLabel

logger = get_logger(__name__)


class LabelDirectoryClient:
    """Reads and writes the Gmail label list.

    Name lookups always take a fresh listing; nothing is cached between
    calls, so a lookup right after a create sees the new label.
    """

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        service: Any = None,
        config: Optional[GmailConfig] = None,
    ):
        """
        Initialize the directory client.

        Args:
            credentials: Valid OAuth2 credentials (ignored when service is given)
            service: Prebuilt Gmail API service resource
            config: Gmail API settings (default: module config)
        """
        if service is None and credentials is None:
            raise ValueError("Either credentials or a Gmail service is required")

        self.config = config or gmail_config
        self.user_id = self.config.user_id
        self.service = service or build("gmail", "v1", credentials=credentials)
        logger.info("Gmail label directory initialized")

    @rate_limit(calls_per_second=gmail_config.api_rate_limit)
    @retry_with_exponential_backoff()
    def _execute(self, request: Any) -> dict:
        """Execute one API request; retried on 429 and 5xx."""
        return request.execute() or {}

    def list_all(self) -> List[RemoteLabel]:
        """
        Fetch all user labels (system labels are filtered out).

        Returns:
            List of RemoteLabel objects

        Raises:
            DirectoryUnavailable: If the call fails or returns no label payload
        """
        try:
            with Timer("list_labels"):
                results = self._execute(
                    self.service.users().labels().list(userId=self.user_id)
                )
        except API_ERRORS as error:
            logger.error(f"Failed to fetch Gmail labels: {error}")
            raise DirectoryUnavailable(f"Label listing failed: {error}") from error

        if "labels" not in results:
            logger.error("No labels found in the Gmail account")
            raise DirectoryUnavailable("Label listing returned no payload")

        labels = []
        for label_data in results["labels"]:
            try:
                label = RemoteLabel.from_gmail_label(label_data)
            except (KeyError, ValueError) as e:
                logger.warning(f"Failed to parse label {label_data.get('id')}: {e}")
                continue

            if label.is_user_label:
                labels.append(label)

        logger.debug(f"Found {len(labels)} user labels out of {len(results['labels'])}")
        return labels

    def list_all_or_empty(self) -> List[RemoteLabel]:
        """List user labels, degrading to an empty list when Gmail is unavailable."""
        try:
            return self.list_all()
        except DirectoryUnavailable as error:
            logger.error(f"Treating Gmail label set as empty: {error}")
            return []

    def name_index(self) -> dict[str, str]:
        """Fresh mapping of label name to label ID."""
        return {label.name: label.id for label in self.list_all()}

    def find_id(self, name: str) -> Optional[str]:
        """Look up a label ID by name, or None if there is no such label."""
        return self.name_index().get(name)

    def id_of(self, name: str) -> str:
        """
        Look up a label ID by name.

        Raises:
            LabelNotFound: If no user label has this name
            DirectoryUnavailable: If the listing fails
        """
        label_id = self.find_id(name)
        if label_id is None:
            raise LabelNotFound(name)
        return label_id

    def create(self, name: str) -> str:
        """
        Create a label. Gmail does not dedupe, so callers check existence first.

        Args:
            name: Full label path

        Returns:
            The new label ID

        Raises:
            RemoteOperationFailed: If Gmail rejects the call (409 when the name exists)
        """
        body = {
            "name": name,
            "labelListVisibility": "labelShow",
            "messageListVisibility": "show",
        }

        try:
            with Timer(f"create_label {name}"):
                created = self._execute(
                    self.service.users().labels().create(userId=self.user_id, body=body)
                )
        except API_ERRORS as error:
            raise RemoteOperationFailed("create", name, error) from error

        label_id = created.get("id")
        if not label_id:
            raise RemoteOperationFailed("create", name, ValueError("response carried no label ID"))

        logger.info(f'Created label "{name}" with ID: {label_id}')
        return label_id

    def delete(self, label_id: str, name: Optional[str] = None) -> None:
        """
        Delete a label by ID.

        Raises:
            RemoteOperationFailed: If the call fails
        """
        try:
            self._execute(
                self.service.users().labels().delete(userId=self.user_id, id=label_id)
            )
        except API_ERRORS as error:
            raise RemoteOperationFailed("delete", name or label_id, error) from error

        logger.info(f'Deleted label "{name or label_id}"')

    def threads_with_label(self, label_id: str, name: Optional[str] = None) -> List[str]:
        """
        List every thread tagged with a label, following pagination.

        Returns:
            Thread IDs

        Raises:
            RemoteOperationFailed: If any page fails
        """
        thread_ids: List[str] = []
        page_token = None

        try:
            with Timer(f"threads_with_label {name or label_id}"):
                while True:
                    results = self._execute(
                        self.service.users()
                        .threads()
                        .list(
                            userId=self.user_id,
                            labelIds=[label_id],
                            maxResults=self.config.threads_page_size,
                            pageToken=page_token,
                        )
                    )
                    thread_ids.extend(thread["id"] for thread in results.get("threads", []))

                    page_token = results.get("nextPageToken")
                    if not page_token:
                        break
        except API_ERRORS as error:
            raise RemoteOperationFailed("list threads for", name or label_id, error) from error

        logger.debug(f'Found {len(thread_ids)} threads with label "{name or label_id}"')
        return thread_ids

    def add_label_to_threads(self, label_id: str, thread_ids: List[str]) -> List[str]:
        """Tag threads with a label in one batch request; returns failed thread IDs."""
        return self._modify_threads(thread_ids, {"addLabelIds": [label_id]}, "add", label_id)

    def remove_label_from_threads(self, label_id: str, thread_ids: List[str]) -> List[str]:
        """Untag threads in one batch request; returns failed thread IDs."""
        return self._modify_threads(thread_ids, {"removeLabelIds": [label_id]}, "remove", label_id)

    @rate_limit(calls_per_second=5.0)  # Lower rate for batch operations
    def _modify_threads(
        self,
        thread_ids: List[str],
        body: dict,
        phase: str,
        label_id: str,
    ) -> List[str]:
        """
        Apply one modify body to many threads using the Gmail Batch API.

        The caller bounds the batch size; Gmail accepts up to 1000 calls per batch.
        """
        if not thread_ids:
            return []

        failed_ids: List[str] = []

        def callback(request_id, response, exception):
            if exception:
                logger.error(f"Failed to {phase} label {label_id} on thread {request_id}: {exception}")
                failed_ids.append(request_id)

        batch = self.service.new_batch_http_request(callback=callback)
        for thread_id in thread_ids:
            batch.add(
                self.service.users().threads().modify(
                    userId=self.user_id,
                    id=thread_id,
                    body=body,
                ),
                request_id=thread_id,
            )

        try:
            with Timer(f"{phase}_label_batch"):
                batch.execute()
        except API_ERRORS as error:
            raise RemoteOperationFailed(f"{phase} threads for", label_id, error) from error

        logger.debug(
            f"Batch {phase} of label {label_id}: "
            f"{len(thread_ids) - len(failed_ids)}/{len(thread_ids)} threads"
        )
        return failed_ids
