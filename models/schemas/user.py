from marshmallow import Schema, fields, pre_load, validates, validates_schema, ValidationError

from utils.timeutils import isoformat

MIN_PASSWORD_LENGTH = 6


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _check_password_length(value):
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")


class RegisterSchema(Schema):
    first_name = fields.String(data_key="firstName", load_default=None, allow_none=True)
    last_name = fields.String(data_key="lastName", load_default=None, allow_none=True)
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)
    confirm_password = fields.String(data_key="confirmPassword", required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        _check_password_length(value)

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get("password") != data.get("confirm_password"):
            raise ValidationError("Passwords do not match.", field_name="confirmPassword")


class LoginSchema(Schema):
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data["email"] = _norm_email(data["email"])
        return data


class RefreshTokenRequestSchema(Schema):
    refresh_token = fields.String(data_key="refreshToken", required=True)


class EditProfileSchema(Schema):
    first_name = fields.String(data_key="firstName", required=True)
    last_name = fields.String(data_key="lastName", required=True)


class UpdatePasswordSchema(Schema):
    current_password = fields.String(data_key="currentPassword", required=True, load_only=True)
    new_password = fields.String(data_key="newPassword", required=True, load_only=True)
    confirm_new_password = fields.String(data_key="confirmNewPassword", required=True, load_only=True)

    @validates("new_password")
    def validate_password(self, value, **kwargs):
        _check_password_length(value)

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get("new_password") != data.get("confirm_new_password"):
            raise ValidationError(
                "New password and confirmation do not match.", field_name="confirmNewPassword"
            )


class DeleteAccountSchema(Schema):
    current_password = fields.String(data_key="currentPassword", required=True, load_only=True)


class AssignRoleSchema(Schema):
    role = fields.String(required=True)


class AuthResponseSchema(Schema):
    access_token = fields.String(data_key="accessToken")
    expires_at = fields.Method("get_expires_at", data_key="expiresAt")
    refresh_token = fields.String(data_key="refreshToken")
    refresh_expires_at = fields.Method("get_refresh_expires_at", data_key="refreshTokenExpiresAt")
    email = fields.String()
    roles = fields.List(fields.String())

    def get_expires_at(self, obj):
        return isoformat(obj.access_expires_at)

    def get_refresh_expires_at(self, obj):
        return isoformat(obj.refresh_expires_at)


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    first_name = fields.String(attribute="f_name", data_key="firstName", allow_none=True)
    last_name = fields.String(attribute="l_name", data_key="lastName", allow_none=True)
    email = fields.String(allow_none=True)
    roles = fields.List(fields.String(allow_none=True))
    created_at = fields.Method("get_created_at", data_key="createdAt")

    def get_created_at(self, obj):
        return isoformat(obj.created_at)
