from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import timedelta
from pathlib import Path

from adminconsole.services._shared.ports import (
    CredentialStore,
    SessionMeta,
    credential_from_record,
    credential_to_record,
    meta_from_record,
    meta_to_record,
)
from adminconsole.services._shared.ports.credential_store import DEFAULT_GRACE, META_FIELDS
from adminconsole.services.auth.dto import Credential

log = logging.getLogger(__name__)


class JsonFileCredentialStore(CredentialStore):
    """
    Credential persisted as a JSON document on disk.

    Writes go to a temporary file in the same directory which is then
    swapped in with :func:`os.replace`, so a reader (or a crash) sees either
    the previous document or the new one. The session details share the
    credential's record and are rewritten under the same lock.

    :param path: Target file; parent directories are created on first write.
    :param key: Record name inside the document.
    :param grace: Expiry grace window.
    """

    def __init__(
        self, path: str | Path, *, key: str = "auth-storage", grace: timedelta = DEFAULT_GRACE
    ) -> None:
        self.path = Path(path).expanduser()
        self.key = key
        self.grace = grace
        self._lock = threading.Lock()

    def get(self) -> Credential | None:
        return credential_from_record(self._read_record())

    def set(self, credential: Credential) -> None:
        with self._lock:
            record = self._read_record() or {}
            record.update(credential_to_record(credential))
            self._write({self.key: record})

    def clear(self) -> None:
        with self._lock:
            self._write({self.key: None})

    def get_meta(self) -> SessionMeta:
        return meta_from_record(self._read_record())

    def set_meta(self, meta: SessionMeta) -> None:
        with self._lock:
            record = {
                name: value
                for name, value in (self._read_record() or {}).items()
                if name not in META_FIELDS
            }
            record.update(meta_to_record(meta))
            self._write({self.key: record})

    def _read_record(self) -> dict | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            document = json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Ignoring unreadable credential file %s", self.path)
            return None
        record = document.get(self.key) if isinstance(document, dict) else None
        return record if isinstance(record, dict) else None

    def _write(self, document: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh)
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
