"""
Session lifecycle state machine.

States move ``SIGNED_OUT -> ACTIVE -> REFRESHING -> ACTIVE`` on the happy
path and end in ``SIGNED_OUT`` (or ``EXPIRED``) when the credential can no
longer be used. The state is derived from the credential store plus refresh
activity and is never persisted; the last activity time is, so the idle
timeout spans process restarts.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from enum import Enum

from adminconsole.services._shared.errors import IllegalTransition
from adminconsole.services._shared.ports.credential_store import CredentialStore, utcnow
from adminconsole.services.auth.dto import Credential

log = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Observable session states."""

    SIGNED_OUT = "signed_out"
    ACTIVE = "active"
    REFRESHING = "refreshing"
    EXPIRED = "expired"


_ALLOWED: dict[SessionState, frozenset[SessionState]] = {
    SessionState.SIGNED_OUT: frozenset({SessionState.ACTIVE}),
    SessionState.ACTIVE: frozenset(
        {SessionState.REFRESHING, SessionState.SIGNED_OUT, SessionState.EXPIRED}
    ),
    SessionState.REFRESHING: frozenset({SessionState.ACTIVE, SessionState.SIGNED_OUT}),
    SessionState.EXPIRED: frozenset({SessionState.SIGNED_OUT, SessionState.ACTIVE}),
}

Listener = Callable[[SessionState, SessionState], None]
SignOutHook = Callable[[str], object]


class SessionLifecycle:
    """
    Owner of the session state.

    :param store: Credential store backing the session.
    :param idle_timeout: Seconds of inactivity after which :meth:`check_idle`
        signs the session out. ``None`` or ``0`` disables idle tracking.
    """

    def __init__(self, store: CredentialStore, *, idle_timeout: float | None = None) -> None:
        self.store = store
        self.idle_timeout = idle_timeout or None
        self._state = SessionState.SIGNED_OUT
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._sign_out_hooks: list[SignOutHook] = []
        self._last_activity: datetime | None = None
        self._held = threading.local()

    # ------------------------------------------------------------------ #
    # Read-only signals
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def is_active(self) -> bool:
        """``True`` while the operator is signed in (including mid-refresh)."""
        return self.state in (SessionState.ACTIVE, SessionState.REFRESHING)

    # ------------------------------------------------------------------ #
    # Observers
    # ------------------------------------------------------------------ #

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register ``listener(previous, current)`` for every transition.

        :returns: Callable removing the listener again.
        """
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def on_sign_out(self, hook: SignOutHook) -> None:
        """Register a hook run with the reason *before* a forced sign-out clears state."""
        with self._lock:
            self._sign_out_hooks.append(hook)

    @contextmanager
    def deferred_notifications(self) -> Iterator[None]:
        """
        Hold listener calls for transitions made by this thread in the block.

        The held transitions are delivered, in order, once the block exits.
        Sign-out hooks are not deferred.
        """
        if getattr(self._held, "transitions", None) is not None:
            yield
            return
        held: list[tuple[SessionState, SessionState]] = []
        self._held.transitions = held
        try:
            yield
        finally:
            self._held.transitions = None
            for transition in held:
                self._notify(transition)

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    def restore(self) -> SessionState:
        """
        Derive the state from the persisted credential at start-up.

        A stored credential whose refresh token is still valid resumes the
        session; a fully expired one is discarded, and so is one whose
        persisted last activity lies beyond the idle timeout.
        """
        credential = self.store.get()
        if credential is None:
            return self.state
        if self.store.is_refresh_expired():
            log.info("Discarding persisted credential: refresh token expired")
            self.store.clear()
            return self.state
        last = self.store.get_meta().last_activity
        if last is not None and self._idle_elapsed(last):
            log.info("Discarding persisted credential: session idle since %s", last.isoformat())
            self.store.clear()
            return self.state
        with self._lock:
            if self._state is SessionState.SIGNED_OUT:
                self._last_activity = last or utcnow()
                transition = self._move(SessionState.ACTIVE)
            else:
                transition = None
        self._notify(transition)
        return self.state

    def sign_in(self, credential: Credential) -> None:
        """Store a freshly issued credential and enter ``ACTIVE``."""
        if self.state in (SessionState.ACTIVE, SessionState.REFRESHING):
            self.force_sign_out("re-authenticated")
        with self._lock:
            self.store.set(credential)
            self._record_activity()
            transition = self._move(SessionState.ACTIVE)
        self._notify(transition)

    def begin_refresh(self) -> None:
        """Enter ``REFRESHING``; only the refresh issuer calls this."""
        with self._lock:
            transition = self._move(SessionState.REFRESHING)
        self._notify(transition)

    def end_refresh(self) -> None:
        """
        Leave ``REFRESHING`` after a refresh that did not end the session.

        A sign-out that raced the refresh wins: nothing happens unless the
        session is still refreshing.
        """
        with self._lock:
            if self._state is not SessionState.REFRESHING:
                log.debug("Refresh settled after session left refreshing state")
                return
            transition = self._move(SessionState.ACTIVE)
        self._notify(transition)

    def expire(self) -> None:
        """Mark both tokens as unusable: clear the store and enter ``EXPIRED``."""
        with self._lock:
            if self._state is not SessionState.ACTIVE:
                return
            self.store.clear()
            transition = self._move(SessionState.EXPIRED)
        log.info("Session expired: access and refresh tokens are past their expiry")
        self._notify(transition)

    def force_sign_out(self, reason: str = "signed out") -> None:
        """
        Sign out from any state. Idempotent.

        Sign-out hooks (refresh cancellation) run first so no caller attached
        to a pending refresh is left waiting.
        """
        with self._lock:
            hooks = list(self._sign_out_hooks)
        for hook in hooks:
            hook(reason)

        with self._lock:
            self.store.clear()
            self._last_activity = None
            if self._state is SessionState.SIGNED_OUT:
                return
            transition = self._move(SessionState.SIGNED_OUT)
        log.info("Session signed out: %s", reason, extra={"state": SessionState.SIGNED_OUT.value})
        self._notify(transition)

    # ------------------------------------------------------------------ #
    # Activity tracking
    # ------------------------------------------------------------------ #

    def touch(self) -> None:
        """Record operator activity and persist its time next to the credential."""
        with self._lock:
            if self._state in (SessionState.ACTIVE, SessionState.REFRESHING):
                self._record_activity()

    def check_idle(self) -> bool:
        """
        Sign out when the idle timeout has elapsed since the last activity.

        :returns: ``True`` if the session was signed out by this call.
        """
        if not self.idle_timeout:
            return False
        with self._lock:
            last = self._last_activity
            signed_in = self._state is not SessionState.SIGNED_OUT
        if not signed_in or last is None:
            return False
        if not self._idle_elapsed(last):
            return False
        self.force_sign_out("Session expired. Your session has expired. Please log in again.")
        return True

    def check_expiry(self) -> None:
        """Move an ``ACTIVE`` session to ``EXPIRED`` when both tokens are past expiry."""
        if self.state is not SessionState.ACTIVE:
            return
        credential = self.store.get()
        if credential is None:
            self.expire()
            return
        now = utcnow()
        if credential.access_expired(now, self.store.grace) and credential.refresh_expired(
            now, self.store.grace
        ):
            self.expire()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _move(self, target: SessionState) -> tuple[SessionState, SessionState]:
        current = self._state
        if target not in _ALLOWED[current]:
            raise IllegalTransition(current.value, target.value)
        self._state = target
        log.debug("Session %s -> %s", current.value, target.value, extra={"state": target.value})
        return current, target

    def _record_activity(self) -> None:
        now = utcnow()
        self._last_activity = now
        self.store.set_meta(replace(self.store.get_meta(), last_activity=now))

    def _idle_elapsed(self, last: datetime) -> bool:
        if not self.idle_timeout:
            return False
        return utcnow() - last > timedelta(seconds=self.idle_timeout)

    def _notify(self, transition: tuple[SessionState, SessionState] | None) -> None:
        if transition is None:
            return
        held = getattr(self._held, "transitions", None)
        if held is not None:
            held.append(transition)
            return
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(*transition)
            except Exception:
                log.exception("Session listener failed on %s -> %s", *transition)
