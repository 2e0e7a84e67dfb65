"""Loading of Google Cloud service account credentials."""

from pathlib import Path

from google.oauth2 import service_account


def load_credentials(
    credentials_file: Path | None,
) -> service_account.Credentials | None:
    """Load credentials from a key file.

    Returns None when no file is configured, which makes the Google clients
    fall back to application default credentials.
    """
    if credentials_file is None:
        return None
    return service_account.Credentials.from_service_account_file(str(credentials_file))
