from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from adminconsole.services.auth.dto import Credential

log = logging.getLogger(__name__)

DEFAULT_GRACE = timedelta(seconds=5)

# Field names of the persisted record (stable across backends)
RECORD_FIELDS = ("access_token", "refresh_token", "access_expires_at", "refresh_expires_at")
META_FIELDS = ("user", "last_activity")


def utcnow() -> datetime:
    """Return a timezone-aware UTC "now"."""
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class SessionMeta:
    """
    Session details persisted next to the credential.

    :param user: Signed-in operator profile, as a plain mapping.
    :param last_activity: Time of the last operator activity (aware UTC).
    """

    user: Mapping[str, Any] | None = None
    last_activity: datetime | None = None


def credential_to_record(credential: Credential) -> dict[str, str]:
    """Serialize a credential into the flat string record shared by backends."""
    return {
        "access_token": credential.access_token,
        "refresh_token": credential.refresh_token,
        "access_expires_at": credential.access_expires_at.isoformat(),
        "refresh_expires_at": credential.refresh_expires_at.isoformat(),
    }


def credential_from_record(record: Mapping[str, Any] | None) -> Credential | None:
    """
    Rebuild a credential from a persisted record.

    Incomplete or invariant-breaking records are treated as absent. Fields
    other than the credential's own (session details) are ignored.
    """
    if not record or not any(record.get(name) for name in RECORD_FIELDS):
        return None
    missing = [name for name in RECORD_FIELDS if not record.get(name)]
    if missing:
        log.warning("Ignoring persisted credential missing fields: %s", ", ".join(missing))
        return None
    try:
        return Credential(
            access_token=str(record["access_token"]),
            refresh_token=str(record["refresh_token"]),
            access_expires_at=datetime.fromisoformat(str(record["access_expires_at"])),
            refresh_expires_at=datetime.fromisoformat(str(record["refresh_expires_at"])),
        )
    except ValueError as exc:
        log.warning("Ignoring invalid persisted credential: %s", exc)
        return None


def meta_to_record(meta: SessionMeta) -> dict[str, str]:
    """Serialize session details; unset fields are left out."""
    record: dict[str, str] = {}
    if meta.user is not None:
        record["user"] = json.dumps(dict(meta.user), sort_keys=True)
    if meta.last_activity is not None:
        record["last_activity"] = meta.last_activity.isoformat()
    return record


def meta_from_record(record: Mapping[str, Any] | None) -> SessionMeta:
    """Rebuild session details; unreadable fields count as unset."""
    if not record:
        return SessionMeta()
    user = None
    if record.get("user"):
        try:
            loaded = json.loads(str(record["user"]))
        except ValueError:
            loaded = None
        if isinstance(loaded, dict):
            user = loaded
        else:
            log.warning("Ignoring unreadable persisted user profile")
    last_activity = None
    if record.get("last_activity"):
        try:
            last_activity = datetime.fromisoformat(str(record["last_activity"]))
        except ValueError:
            log.warning("Ignoring invalid persisted last activity")
        else:
            if last_activity.tzinfo is None:
                last_activity = None
    return SessionMeta(user=user, last_activity=last_activity)


class CredentialStore(Protocol):
    """
    Owner of the current credential.

    ``set`` and ``clear`` MUST be atomic: a concurrent ``get`` observes either
    the previous or the new credential in full, never a mix of both.

    Session details (:class:`SessionMeta`) live next to the credential:
    ``set`` keeps them, ``clear`` removes them together with the credential.
    """

    grace: timedelta

    def get(self) -> Credential | None:
        """Return the current credential (``None`` when signed out)."""

    def set(self, credential: Credential) -> None:
        """Replace the stored credential wholesale and persist it."""

    def clear(self) -> None:
        """Remove the credential and session details and persist the cleared state."""

    def get_meta(self) -> SessionMeta:
        """Return the persisted session details (empty when none were stored)."""

    def set_meta(self, meta: SessionMeta) -> None:
        """Replace the persisted session details."""

    def is_access_expired(self) -> bool:
        """
        Check the access expiry against the current time.

        A token that expires within :attr:`grace` already counts as expired.
        Without a credential the answer is ``True``.
        """
        credential = self.get()
        return credential is None or credential.access_expired(utcnow(), self.grace)

    def is_refresh_expired(self) -> bool:
        """Same as :meth:`is_access_expired`, for the refresh expiry."""
        credential = self.get()
        return credential is None or credential.refresh_expired(utcnow(), self.grace)


class InMemoryCredentialStore(CredentialStore):
    """
    Process-local credential store.

    .. note::
       Holds an immutable :class:`Credential` reference swapped under a
       threading lock, so readers never see a partial write.
    """

    def __init__(self, *, grace: timedelta = DEFAULT_GRACE) -> None:
        self.grace = grace
        self._credential: Credential | None = None
        self._meta = SessionMeta()
        self._lock = threading.Lock()

    def get(self) -> Credential | None:
        with self._lock:
            return self._credential

    def set(self, credential: Credential) -> None:
        with self._lock:
            self._credential = credential

    def clear(self) -> None:
        with self._lock:
            self._credential = None
            self._meta = SessionMeta()

    def get_meta(self) -> SessionMeta:
        with self._lock:
            return self._meta

    def set_meta(self, meta: SessionMeta) -> None:
        with self._lock:
            self._meta = meta
