# adminconsole/services/auth/service.py
from __future__ import annotations

import dataclasses
import logging
import threading
from typing import TYPE_CHECKING, Any

import requests

from adminconsole.core.errors import APIError
from adminconsole.schemas.auth import (
    ChangePasswordSchema,
    EmployeeSchema,
    LoginSchema,
    ProfileSchema,
)
from adminconsole.services._shared.base import BaseService
from adminconsole.services._shared.errors import PermissionDenied, ServiceError
from adminconsole.services._shared.ports import AuthGateway, CredentialStore
from adminconsole.services.auth.dto import (
    ChangePasswordIn,
    EmployeeIn,
    LoginIn,
    LoginOut,
    ProfileIn,
    UserOut,
)
from adminconsole.services.session.lifecycle import SessionLifecycle, SessionState

if TYPE_CHECKING:
    from adminconsole.infra.http.pipeline import RequestPipeline

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Operator sign-in / sign-out and account operations on top of the session.

    Login and logout talk to the auth endpoints directly through the gateway;
    token refresh is never triggered from here (the request pipeline and the
    refresh coordinator own it). Account operations are ordinary
    authenticated calls and go through the pipeline.

    The signed-in operator's profile is persisted next to the credential, so
    a restored session knows who is signed in.
    """

    PROFILE_PATH = "/users/profile"
    CHANGE_PASSWORD_PATH = "/auth/change-password"
    CREATE_EMPLOYEE_PATH = "/users/create-employee"

    def __init__(
        self,
        *,
        gateway: AuthGateway,
        store: CredentialStore,
        lifecycle: SessionLifecycle,
        pipeline: RequestPipeline,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param gateway: Upstream auth endpoints.
        :param store: Credential store shared with the pipeline.
        :param lifecycle: Session state machine.
        :param pipeline: Credential-aware sender for account calls.
        """
        super().__init__(pipeline=pipeline)
        self.gateway = gateway
        self.store = store
        self.lifecycle = lifecycle
        self._user: UserOut | None = None
        self._lock = threading.Lock()
        lifecycle.on_sign_out(self._forget_user)

    # ------------------------------------------------------------------ #
    # Read-only signals
    # ------------------------------------------------------------------ #

    @property
    def current_user(self) -> UserOut | None:
        """Profile of the signed-in operator, if known."""
        if not self.lifecycle.is_active:
            return None
        with self._lock:
            if self._user is None:
                self._user = self._load_user()
            return self._user

    @property
    def is_active(self) -> bool:
        return self.lifecycle.is_active

    def require_permission(self, permission: str) -> None:
        """
        Refuse a call the signed-in operator may not make.

        Without a known profile the decision is left to the API.

        :raises PermissionDenied: The operator lacks ``permission``.
        """
        user = self.current_user
        if user is not None and not user.has_permission(permission):
            raise PermissionDenied(permission)

    # ------------------------------------------------------------------ #
    # Login / logout
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> LoginOut:
        """
        Authenticate and start a session.

        :param dto: Login input.
        :returns: Signed-in operator and the new credential.
        :raises marshmallow.ValidationError: Malformed email or password.
        :raises adminconsole.core.errors.APIError: Credentials rejected upstream.
        """
        LoginSchema().load({"email": dto.email, "password": dto.password})
        out = self.gateway.login(dto)
        self.lifecycle.sign_in(out.credential)
        self._remember(out.user)
        log.info("Signed in", extra={"state": SessionState.ACTIVE.value})
        return out

    def logout(self) -> None:
        """
        End the session.

        The upstream call is best effort; local state is always cleared.
        """
        credential = self.store.get()
        if credential is not None:
            try:
                self.gateway.logout(credential.access_token)
            except (APIError, requests.RequestException) as exc:
                log.warning("Upstream logout failed: %s", exc.__class__.__name__)
        self.lifecycle.force_sign_out("logout")

    def restore(self) -> SessionState:
        """Resume a session from the persisted credential, if still usable."""
        return self.lifecycle.restore()

    # ------------------------------------------------------------------ #
    # Account
    # ------------------------------------------------------------------ #

    def update_profile(self, dto: ProfileIn) -> UserOut:
        """
        Change the signed-in operator's name and email.

        :returns: The updated profile, also persisted for later runs.
        :raises ServiceError: Nobody is signed in.
        :raises marshmallow.ValidationError: Invalid name or email.
        """
        user = self._require_user()
        body = self.validate(ProfileSchema(), {"name": dto.name, "email": dto.email})
        self.call("PUT", self.PROFILE_PATH, json=body)
        updated = dataclasses.replace(user, name=body["name"], email=body["email"])
        self._remember(updated)
        return updated

    def change_password(self, dto: ChangePasswordIn) -> None:
        """
        Replace the signed-in operator's password.

        :raises marshmallow.ValidationError: Too short, or confirmation differs.
        """
        body = self.validate(
            ChangePasswordSchema(),
            {
                "currentPassword": dto.current_password,
                "newPassword": dto.new_password,
                "confirmPassword": dto.confirm_password,
            },
        )
        self.call("POST", self.CHANGE_PASSWORD_PATH, json=body)
        log.info("Password changed")

    def create_employee(self, dto: EmployeeIn) -> Any:
        """
        Create an employee account (admins only).

        :returns: The created account as returned by the API.
        :raises PermissionDenied: The signed-in operator is not an admin.
        """
        if self._require_user().role != "admin":
            raise PermissionDenied("admin")
        body = self.validate(
            EmployeeSchema(),
            {
                "name": dto.name,
                "email": dto.email,
                "password": dto.password,
                "permissions": list(dto.permissions),
            },
        )
        return self.call("POST", self.CREATE_EMPLOYEE_PATH, json=body)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _require_user(self) -> UserOut:
        user = self.current_user
        if user is None:
            raise ServiceError("Not signed in. Please sign in.")
        return user

    def _remember(self, user: UserOut) -> None:
        with self._lock:
            self._user = user
            meta = self.store.get_meta()
            self.store.set_meta(dataclasses.replace(meta, user=user.to_mapping()))

    def _load_user(self) -> UserOut | None:
        stored = self.store.get_meta().user
        if stored is None:
            return None
        try:
            return UserOut.from_mapping(stored)
        except (KeyError, TypeError) as exc:
            log.warning("Ignoring persisted user profile: %s", exc)
            return None

    def _forget_user(self, reason: str) -> None:
        with self._lock:
            self._user = None
