"""
Google Drive v3 client.

Uses a service account with the read-only Drive scope. The authorized session
is a requests.Session, so the HTTP handling here reads the same as the
Shopify client.
"""

import base64
import binascii
import json
import logging
from typing import Dict, Any, List, Optional

import requests
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from ..config import Config
from ..exceptions import ConfigurationError, DriveApiError

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ['https://www.googleapis.com/auth/drive.readonly']
DRIVE_API_URL = 'https://www.googleapis.com/drive/v3'
FOLDER_MIME_TYPE = 'application/vnd.google-apps.folder'
FILE_FIELDS = 'nextPageToken, files(id,name,mimeType,size,modifiedTime)'


def decode_service_account_key(key_b64: Optional[str]) -> Dict[str, Any]:
    """Decode a base64-encoded service account JSON key."""
    if not key_b64:
        raise ConfigurationError("Missing GOOGLE_DRIVE_SERVICE_ACCOUNT_KEY")

    try:
        return json.loads(base64.b64decode(key_b64).decode('utf-8'))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise ConfigurationError(f"Failed to parse GOOGLE_DRIVE_SERVICE_ACCOUNT_KEY: {e}")


class GoogleDriveClient:
    """Lists folder children and downloads file bytes."""

    def __init__(self, session: requests.Session, timeout: int = 30, page_size: int = 200):
        self.session = session
        self.timeout = timeout
        self.page_size = page_size

    @classmethod
    def from_config(cls, config=Config) -> 'GoogleDriveClient':
        info = decode_service_account_key(config.GOOGLE_DRIVE_SERVICE_ACCOUNT_KEY)
        try:
            credentials = service_account.Credentials.from_service_account_info(info, scopes=DRIVE_SCOPES)
        except (KeyError, ValueError) as e:
            raise ConfigurationError(f"Invalid Google Drive service account key: {e}")
        return cls(AuthorizedSession(credentials), timeout=config.HTTP_TIMEOUT)

    def _get(self, url: str, params: Optional[dict] = None) -> requests.Response:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise DriveApiError(f"Google Drive request failed: {e}")

        if response.status_code != 200:
            raise DriveApiError(
                f"Google Drive API error {response.status_code}: {response.text[:500]}",
                status_code=response.status_code
            )
        return response

    def list_children(self, folder_id: str) -> List[Dict[str, Any]]:
        """
        List the non-trashed children of a folder, following nextPageToken.

        Returns:
            File resources with id, name, mimeType, size and modifiedTime
        """
        files: List[Dict[str, Any]] = []
        page_token = None

        while True:
            params = {
                'q': f"'{folder_id}' in parents and trashed = false",
                'fields': FILE_FIELDS,
                'pageSize': self.page_size,
                'includeItemsFromAllDrives': 'true',
                'supportsAllDrives': 'true',
                'orderBy': 'folder,name',
            }
            if page_token:
                params['pageToken'] = page_token

            response = self._get(f"{DRIVE_API_URL}/files", params)
            try:
                data = response.json()
            except ValueError as e:
                raise DriveApiError(f"Invalid JSON listing folder {folder_id}: {e}", status_code=response.status_code)
            files.extend(data.get('files', []))

            page_token = data.get('nextPageToken')
            if not page_token:
                return files

    def download(self, file_id: str) -> bytes:
        """Download a file's content."""
        response = self._get(
            f"{DRIVE_API_URL}/files/{file_id}",
            {'alt': 'media', 'supportsAllDrives': 'true'}
        )
        return response.content
