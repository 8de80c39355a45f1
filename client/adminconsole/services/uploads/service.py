# comments in English; reST docstrings
from __future__ import annotations

import mimetypes
from pathlib import Path

from marshmallow import ValidationError

from adminconsole.schemas.upload import UploadResultSchema
from adminconsole.services._shared.base import BaseService
from adminconsole.services._shared.errors import EnvelopeError
from adminconsole.services.uploads.dto import UploadOut


class UploadService(BaseService):
    """
    File uploads (``/uploads``).

    The file content is sent as bytes, so the multipart body can be rebuilt
    when the pipeline retries after a refresh.
    """

    PATH = "/uploads"

    def upload(
        self, filename: str, content: bytes, *, content_type: str | None = None
    ) -> UploadOut:
        """
        Upload a file as multipart field ``file``.

        :param filename: Name reported to the server.
        :param content: File bytes.
        :param content_type: MIME type; guessed from ``filename`` when omitted.
        :returns: Public URL and storage key of the stored file.
        """
        if not filename:
            raise ValueError("filename must not be empty")
        mime = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        data = self.call("POST", self.PATH, files={"file": (filename, content, mime)})
        try:
            loaded = UploadResultSchema().load(self.expect_mapping(data, self.PATH))
        except ValidationError as exc:
            raise EnvelopeError(self.PATH, f"invalid payload: {exc.messages}") from exc
        return UploadOut(url=loaded["url"], key=loaded["key"])

    def upload_path(self, path: str | Path) -> UploadOut:
        """Read a local file and :meth:`upload` it."""
        path = Path(path)
        return self.upload(path.name, path.read_bytes())
