"""Google OAuth2 flow for the Gmail and Sheets APIs."""

import json
import secrets
from pathlib import Path
from typing import Optional

import keyring
from keyring.errors import PasswordDeleteError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from label_syncer.lib.config import gmail_config, security_config, storage_config
from label_syncer.lib.logger import get_logger

logger = get_logger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleAuthenticator:
    """OAuth2 authentication with the refresh token kept in the OS keyring."""

    def __init__(
        self,
        credentials_path: Optional[Path] = None,
        scopes: Optional[list[str]] = None,
    ):
        """
        Args:
            credentials_path: OAuth client secrets (credentials.json) from Google Cloud Console
            scopes: API scopes to request (default: Gmail labels/modify and Sheets)
        """
        self.credentials_path = credentials_path or storage_config.get_credentials_path()
        self.scopes = scopes or gmail_config.scopes
        self.keyring_service = security_config.keyring_service
        self.keyring_username = security_config.keyring_username
        self.creds: Optional[Credentials] = None

    def authenticate(self, force_reauth: bool = False) -> Credentials:
        """
        Return valid credentials, refreshing or running the browser flow as needed.

        Raises:
            FileNotFoundError: If credentials.json is missing
            ValueError: If the OAuth state check fails
        """
        if not self.credentials_path.exists():
            raise FileNotFoundError(
                f"Credentials file not found: {self.credentials_path}\n"
                "Download an OAuth 2.0 Client ID (Desktop app) from "
                "Google Cloud Console > APIs & Services > Credentials, "
                "enable the Gmail and Google Sheets APIs, and save it as credentials.json"
            )

        self._check_credentials_permissions()

        if not force_reauth:
            self.creds = self._load_credentials_from_keyring()

        if self.creds and not self.creds.valid and self.creds.refresh_token:
            try:
                logger.info("Refreshing Google credentials")
                self.creds.refresh(Request())
                self._save_credentials_to_keyring(self.creds)
            except Exception as e:
                logger.warning(f"Failed to refresh credentials: {e}")
                self.creds = None

        if force_reauth or not self.creds or not self.creds.valid:
            logger.info("Starting Google OAuth2 authentication flow")
            self.creds = self._perform_oauth_flow()
            self._save_credentials_to_keyring(self.creds)
            logger.info("Google authentication completed successfully")

        return self.creds

    def _perform_oauth_flow(self) -> Credentials:
        """Run the installed-app flow on a local port with a CSRF state token."""
        state = secrets.token_urlsafe(32)

        flow = InstalledAppFlow.from_client_secrets_file(
            str(self.credentials_path),
            scopes=self.scopes,
            state=state,
        )

        creds = flow.run_local_server(
            port=0,
            prompt="consent",
            success_message="Authentication successful! You can close this window.",
        )

        if flow.state != state:
            raise ValueError(
                "OAuth state mismatch detected. Possible CSRF attack. "
                "Please try authenticating again."
            )

        return creds

    def _check_credentials_permissions(self) -> None:
        from label_syncer.lib.utils import ensure_secure_file

        if self.credentials_path.exists():
            ensure_secure_file(self.credentials_path, mode=0o600)

    def _client_config(self) -> dict:
        with open(self.credentials_path) as f:
            data = json.load(f)
        return data.get("installed") or data.get("web") or {}

    def _load_credentials_from_keyring(self) -> Optional[Credentials]:
        """Rebuild credentials from the stored refresh token, or None."""
        try:
            refresh_token = keyring.get_password(self.keyring_service, self.keyring_username)
            if not refresh_token:
                logger.debug("No refresh token found in keyring")
                return None

            self._check_credentials_permissions()
            client_config = self._client_config()

            return Credentials(
                token=None,
                refresh_token=refresh_token,
                token_uri=TOKEN_URI,
                client_id=client_config["client_id"],
                client_secret=client_config["client_secret"],
                scopes=self.scopes,
            )

        except Exception as e:
            logger.warning(f"Failed to load credentials from keyring: {e}")
            return None

    def _save_credentials_to_keyring(self, creds: Credentials) -> None:
        if not creds.refresh_token:
            logger.warning("No refresh token available to save")
            return

        try:
            keyring.set_password(self.keyring_service, self.keyring_username, creds.refresh_token)
            logger.debug("Saved refresh token to keyring")
        except Exception as e:
            logger.error(f"Failed to save credentials to keyring: {e}")

    def revoke_credentials(self) -> bool:
        """Delete the stored refresh token; returns False if there was none."""
        try:
            keyring.delete_password(self.keyring_service, self.keyring_username)
        except PasswordDeleteError:
            logger.info("No stored Google credentials to revoke")
            return False

        logger.info("Revoked Google credentials from keyring")
        return True

    def has_stored_credentials(self) -> bool:
        """Whether a refresh token is stored in the keyring."""
        try:
            return bool(keyring.get_password(self.keyring_service, self.keyring_username))
        except Exception:
            return False


def get_google_credentials(force_reauth: bool = False) -> Credentials:
    """Convenience wrapper returning valid Gmail/Sheets credentials."""
    return GoogleAuthenticator().authenticate(force_reauth=force_reauth)
