"""Authentication module for the Google APIs."""

from label_syncer.auth.google_auth import (
    GoogleAuthenticator,
    get_google_credentials,
)

__all__ = [
    "GoogleAuthenticator",
    "get_google_credentials",
]
