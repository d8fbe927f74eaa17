from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class UploadFile:
    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> UploadFile:
        path = Path(path)
        return cls(filename=path.name, content=path.read_bytes(), content_type=content_type)


@dataclass(frozen=True)
class DownloadedFile:
    filename: str
    content: bytes
    content_type: str | None = None
