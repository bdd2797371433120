"""
Recursive walk over a Google Drive folder tree.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from .drive_client import FOLDER_MIME_TYPE, GoogleDriveClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriveLeaf:
    """A file in the tree; `path` is slash-joined relative to the walk root."""
    id: str
    name: str
    path: str
    mime_type: str
    size: Optional[int] = None
    modified_time: Optional[str] = None

    @property
    def sku_label(self) -> str:
        return self.path.split('/')[0]

    @property
    def folder_path(self) -> str:
        return '/'.join(self.path.split('/')[:-1])


class FolderWalker:

    def __init__(self, client: GoogleDriveClient):
        self.client = client

    def walk(self, folder_id: str, prefix: str = '') -> Iterator[DriveLeaf]:
        """Yield every file below `folder_id`, descending into sub-folders depth first."""
        for child in self.client.list_children(folder_id):
            name = child.get('name', '')
            path = f"{prefix}/{name}" if prefix else name

            if child.get('mimeType') == FOLDER_MIME_TYPE:
                logger.debug(f"Descending into {path}")
                yield from self.walk(child['id'], path)
                continue

            size = child.get('size')
            yield DriveLeaf(
                id=child['id'],
                name=name,
                path=path,
                mime_type=child.get('mimeType') or 'application/octet-stream',
                size=int(size) if size is not None else None,
                modified_time=child.get('modifiedTime'),
            )
