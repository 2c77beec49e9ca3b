from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from typing import Optional

DEFAULT_EXPORT_BASENAME = "dashboard"

_WHITESPACE_RE = re.compile(r"\s+")
_DATA_URL_RE = re.compile(r"^data:.*?;base64,(.+)$", flags=re.IGNORECASE | re.DOTALL)


class ExportGenerationError(Exception):
    """Raised when an export artifact cannot be generated."""


@dataclass(slots=True)
class ExportArtifact:
    """Bytes produced by one renderer, owned by the caller once returned."""

    content: bytes
    media_type: str
    filename: str

    def as_data_url(self) -> str:
        payload = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.media_type};base64,{payload}"


def build_export_filename(title: Optional[str], extension: str) -> str:
    base = _WHITESPACE_RE.sub("_", (title or "").lower())
    if not base:
        base = DEFAULT_EXPORT_BASENAME
    return f"{base}.{extension}"


def decode_data_url(data_url: str) -> bytes:
    """Decode a base64 data URL (or a bare base64 payload) into bytes."""

    if not data_url:
        raise ExportGenerationError("Missing image data for the render surface.")

    match = _DATA_URL_RE.match(data_url)
    payload = match.group(1) if match else data_url

    try:
        return base64.b64decode(payload, validate=True)
    except (base64.binascii.Error, ValueError) as exc:  # type: ignore[attr-defined]
        raise ExportGenerationError("Unable to decode base64 image data.") from exc
