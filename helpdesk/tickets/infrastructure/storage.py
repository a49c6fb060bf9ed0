"""
Attachment Storage
==================

Local filesystem storage for uploaded attachment bytes.
"""

import asyncio
from pathlib import Path
from typing import Optional

from helpdesk.config import settings
from helpdesk.core import ValidationException
from helpdesk.tickets.application import IAttachmentStorage


class LocalAttachmentStorage(IAttachmentStorage):
    """Stores each attachment as a flat file under the upload directory."""

    def __init__(self, root: Optional[Path] = None):
        self._root = Path(root or settings.upload_dir)

    def path_for(self, filename: str) -> Path:
        """Path inside the upload directory; rejects anything that escapes it."""
        name = Path(filename).name
        if not name or name != filename or name in (".", ".."):
            raise ValidationException("Invalid attachment filename", {"filename": filename})
        return self._root / name

    async def save(self, filename: str, content: bytes) -> None:
        path = self.path_for(filename)
        await asyncio.to_thread(self._write, path, content)

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
