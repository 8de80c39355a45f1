"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate, validates_schema

ROLES = ["admin", "manager", "employee"]
PERMISSIONS = ["item", "customer", "sales", "dashboard"]


class LoginSchema(Schema):
    """Input payload for authenticating an operator."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class UserSchema(Schema):
    """Operator profile embedded in the login response."""

    class Meta:
        unknown = EXCLUDE

    id = fields.String(required=True, data_key="_id")
    name = fields.String(required=True, validate=validate.Length(min=1))
    email = fields.Email(required=True)
    role = fields.String(required=True, validate=validate.OneOf(ROLES))
    permissions = fields.List(
        fields.String(validate=validate.OneOf(PERMISSIONS)),
        load_default=list,
    )


class TokenPayloadSchema(Schema):
    """Token pair returned by login and refresh (expiries in epoch milliseconds)."""

    class Meta:
        unknown = EXCLUDE

    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(required=True, data_key="refreshToken")
    access_token_expiry = fields.Float(
        load_default=None, allow_none=True, data_key="accessTokenExpiry"
    )
    refresh_token_expiry = fields.Float(
        load_default=None, allow_none=True, data_key="refreshTokenExpiry"
    )


class LoginPayloadSchema(TokenPayloadSchema):
    """Login response: token pair plus the signed-in operator."""

    user = fields.Nested(UserSchema, required=True)


class ProfileSchema(Schema):
    """Profile update of the signed-in operator."""

    name = fields.String(
        required=True,
        validate=validate.Length(min=2, error="Name must be at least 2 characters."),
    )
    email = fields.Email(required=True)


class ChangePasswordSchema(Schema):
    """Password change; the confirmation never leaves the client."""

    current_password = fields.String(
        required=True, data_key="currentPassword", validate=validate.Length(min=1)
    )
    new_password = fields.String(
        required=True,
        data_key="newPassword",
        validate=validate.Length(min=6, error="New password must be at least 6 characters."),
    )
    confirm_password = fields.String(required=True, data_key="confirmPassword", load_only=True)

    @validates_schema
    def passwords_match(self, data: dict[str, Any], **_: Any) -> None:
        if data.get("new_password") != data.get("confirm_password"):
            raise ValidationError({"confirmPassword": ["Passwords don't match"]})


class EmployeeSchema(Schema):
    """Employee account created by an admin."""

    name = fields.String(required=True, validate=validate.Length(min=2))
    email = fields.Email(required=True)
    password = fields.String(required=True, validate=validate.Length(min=6))
    permissions = fields.List(
        fields.String(validate=validate.OneOf(PERMISSIONS)),
        required=True,
        validate=validate.Length(min=1, error="At least one permission must be selected."),
    )
