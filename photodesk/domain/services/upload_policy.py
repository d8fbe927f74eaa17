from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from photodesk.domain.entities.upload import UploadFile

FILE_TOO_LARGE = "file-too-large"
FILE_INVALID_TYPE = "file-invalid-type"
TOO_MANY_FILES = "too-many-files"


def format_bytes(size: int, decimals: int = 2) -> str:
    """Human readable byte count, e.g. ``10485760 -> "10 MB"``."""
    if size == 0:
        return "0 Bytes"
    k = 1024
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    i = 0
    while i < len(units) - 1 and size >= k ** (i + 1):
        i += 1
    value = round(size / k**i, max(decimals, 0))
    return f"{value:g} {units[i]}"


@dataclass(frozen=True)
class Rejection:
    file: UploadFile
    code: str


@dataclass
class ScreenResult:
    accepted: list[UploadFile] = field(default_factory=list)
    rejected: list[Rejection] = field(default_factory=list)
    message: str | None = None


@dataclass(frozen=True)
class UploadPolicy:
    """Client-side file screening applied before anything is uploaded."""

    max_files: int = 10
    max_size: int = 10 * 1024 * 1024
    accept: str = "image/*"

    def reason_message(self, code: str) -> str:
        messages = {
            FILE_TOO_LARGE: f"File is too large. Max size is {format_bytes(self.max_size)}.",
            FILE_INVALID_TYPE: "File type not accepted.",
            TOO_MANY_FILES: f"Too many files. Maximum allowed is {self.max_files}.",
        }
        return messages.get(code, "File not accepted.")

    def _accepts_mime(self, mime: str) -> bool:
        if self.accept in ("*", "*/*"):
            return True
        prefix, _, sub = self.accept.partition("/")
        m_prefix, _, m_sub = mime.partition("/")
        return prefix == m_prefix and sub in ("*", m_sub)

    def detect_mime(self, file: UploadFile) -> str | None:
        """Identify the image format from the bytes, not the filename."""
        try:
            with Image.open(BytesIO(file.content)) as img:
                return Image.MIME.get(img.format or "")
        except (UnidentifiedImageError, OSError):
            return None

    def check(self, file: UploadFile) -> str | None:
        """Return the rejection code for ``file`` or None when accepted."""
        if file.content_type and not self._accepts_mime(file.content_type):
            return FILE_INVALID_TYPE
        if file.size > self.max_size:
            return FILE_TOO_LARGE
        mime = self.detect_mime(file)
        if mime is None or not self._accepts_mime(mime):
            return FILE_INVALID_TYPE
        return None

    def screen(self, files: list[UploadFile]) -> ScreenResult:
        result = ScreenResult()
        if len(files) > self.max_files:
            result.rejected = [Rejection(f, TOO_MANY_FILES) for f in files]
        else:
            for f in files:
                code = self.check(f)
                if code is None:
                    result.accepted.append(f)
                else:
                    result.rejected.append(Rejection(f, code))
        if result.rejected:
            # only the first rejection is reported
            result.message = self.reason_message(result.rejected[0].code)
        return result
