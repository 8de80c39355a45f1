from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UploadOut:
    """Stored file reference returned by the upload endpoint."""

    url: str
    key: str
