from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".pdf", ".docx", ".doc", ".txt")

CONTENT_TYPES = {
    ".pdf": ("application/pdf", "inline"),
    ".docx": (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "attachment",
    ),
    ".doc": (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "attachment",
    ),
    ".txt": ("text/plain", "inline"),
}


@dataclass(frozen=True)
class StoredFile:
    filename: str
    path: Path
    size: int


class DocumentStorage:
    """Persist uploaded policy documents under a server-local directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def save(self, data: bytes, extension: str) -> StoredFile:
        self.root.mkdir(parents=True, exist_ok=True)
        filename = self._generate_filename(extension)
        path = self.root / filename
        path.write_bytes(data)
        logger.info("Stored uploaded document as %s (%s bytes)", filename, len(data))
        return StoredFile(filename=filename, path=path, size=len(data))

    def resolve(self, filename: str) -> Path:
        # Only the base name is trusted; stored names never contain separators.
        return self.root / Path(filename).name

    def remove(self, filename: str) -> bool:
        path = self.resolve(filename)
        if not path.exists():
            return False
        path.unlink()
        return True

    @staticmethod
    def _generate_filename(extension: str) -> str:
        unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
        return f"document-{unique_suffix}{extension.lower()}"


def normalize_extension(filename: str | None) -> str:
    return Path(filename or "").suffix.lower()


def content_type_for(extension: str) -> tuple[str, str]:
    return CONTENT_TYPES.get(extension.lower(), ("application/octet-stream", "attachment"))
