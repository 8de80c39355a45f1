# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

import redis  # type: ignore[import-untyped]

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


@dataclass(slots=True)
class RedisCredentialStore(CredentialStore):
    """
    Redis-backed credential store.

    The credential and the session details live in one hash; writes run
    inside MULTI/EXEC transactions, reads use a single HGETALL, so readers
    never see a mix of two credentials.

    :param r: A Redis client (already connected).
    :param key: Hash key holding the credential.
    :param grace: Expiry grace window.
    """

    r: redis.Redis
    key: str = "auth-storage"
    grace: timedelta = field(default=DEFAULT_GRACE)

    # -------------------- helpers --------------------

    @staticmethod
    def _decode(raw: dict[bytes | str, bytes | str]) -> dict[str, str]:
        def _s(value: bytes | str) -> str:
            return value.decode() if isinstance(value, bytes | bytearray) else str(value)

        return {_s(k): _s(v) for k, v in raw.items()}

    # -------------------- API ------------------------

    def get(self) -> Credential | None:
        raw = self.r.hgetall(self.key)
        if not raw:
            return None
        return credential_from_record(self._decode(raw))

    def set(self, credential: Credential) -> None:
        """
        Replace the credential fields of the hash.

        All four fields are written in one transaction, so no reader observes
        a half-written credential. Session detail fields are left untouched.
        """
        pipe = self.r.pipeline(transaction=True)
        pipe.hset(self.key, mapping=credential_to_record(credential))
        pipe.execute()

    def clear(self) -> None:
        self.r.delete(self.key)

    def get_meta(self) -> SessionMeta:
        return meta_from_record(self._decode(self.r.hgetall(self.key)))

    def set_meta(self, meta: SessionMeta) -> None:
        """Replace the session detail fields; unset ones are removed."""
        record = meta_to_record(meta)
        pipe = self.r.pipeline(transaction=True)
        pipe.hdel(self.key, *META_FIELDS)
        if record:
            pipe.hset(self.key, mapping=record)
        pipe.execute()
