"""
Authentication blueprint:
- POST   /auth/register
- POST   /auth/login
- POST   /auth/refresh
- POST   /auth/revoke
- GET    /auth/me
- PUT    /auth/edit-profile
- PUT    /auth/update-password
- DELETE /auth/delete-account
- POST   /auth/users/<user_id>/roles (Admin only) -> to assign roles

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs signed with HS256,
  one secret per token kind)
- Stores one RefreshToken row per refresh token so rotation can revoke the old one
  and link it to its replacement; a replayed refresh token is rejected
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort

from services.errors import NotFoundError
from models.schemas.user import (
    AssignRoleSchema,
    AuthResponseSchema,
    DeleteAccountSchema,
    EditProfileSchema,
    LoginSchema,
    RefreshTokenRequestSchema,
    RegisterSchema,
    UpdatePasswordSchema,
    UserOutSchema,
)
from utils.decorators import jwt_required, roles_required, session_services

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_request_schema = RefreshTokenRequestSchema()
edit_profile_schema = EditProfileSchema()
update_password_schema = UpdatePasswordSchema()
delete_account_schema = DeleteAccountSchema()
assign_role_schema = AssignRoleSchema()
auth_response_schema = AuthResponseSchema()
user_out_schema = UserOutSchema()


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _session_response(pair, message: str, status: int = 200):
    return jsonify(
        {
            "data": auth_response_schema.dump(pair),
            "message": message,
        }
    ), status


@bp.post("/register")
def register():
    """
    Register a new user and start a session.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string }
            confirmPassword: { type: string }
            firstName: { type: string }
            lastName: { type: string }
    responses:
      201:
        description: Created (returns tokens)
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    data = register_schema.load(_payload())
    pair = session_services().accounts.register(
        data["email"], data["password"], data.get("first_name"), data.get("last_name")
    )
    return _session_response(pair, "User registered successfully", 201)


@bp.post("/login")
def login():
    """
    Login: return access and refresh tokens
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    data = login_schema.load(_payload())
    pair = session_services().accounts.login(data["email"], data["password"])
    return _session_response(pair, "Login successfully")


@bp.post("/refresh")
def refresh():
    """
    Use a refresh token to obtain new access and refresh tokens (rotation)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns a new token pair)
      401:
        description: Invalid, expired, revoked or replayed refresh token
    """
    data = refresh_request_schema.load(_payload())
    pair = session_services().rotation.rotate(data["refresh_token"])
    return _session_response(pair, "Token refresh successfully")


@bp.post("/revoke")
def revoke():
    """
    Revoke a refresh token. Always succeeds, whatever the token.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      204:
        description: ""
    """
    data = refresh_request_schema.load(_payload())
    session_services().rotation.revoke(data["refresh_token"])
    return ("", 204)


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify({"data": user_out_schema.dump(g.current_user)}), 200


@bp.put("/edit-profile")
@jwt_required()
def edit_profile():
    """
    Update first/last name and return a fresh token pair
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             firstName: { type: string }
             lastName: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    data = edit_profile_schema.load(_payload())
    pair = session_services().accounts.edit_profile(
        g.current_user.id, data["first_name"], data["last_name"]
    )
    return _session_response(pair, "Profile updated successfully")


@bp.put("/update-password")
@jwt_required()
def update_password():
    """
    Change password and return a fresh token pair
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             currentPassword: { type: string }
             newPassword: { type: string }
             confirmNewPassword: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Wrong current password
      422:
        description: Validation error
    """
    data = update_password_schema.load(_payload())
    pair = session_services().accounts.update_password(
        g.current_user.id, data["current_password"], data["new_password"]
    )
    return _session_response(pair, "Password updated successfully")


@bp.delete("/delete-account")
@jwt_required()
def delete_account():
    """
    Delete the current account; every refresh token of the user is revoked
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             currentPassword: { type: string }
    responses:
      204:
        description: ""
      401:
        description: Wrong password
    """
    data = delete_account_schema.load(_payload())
    session_services().accounts.delete_account(g.current_user.id, data["current_password"])
    return ("", 204)


@bp.post("/users/<user_id>/roles")
@roles_required(["Admin"])
def assign_role(user_id: str):
    """
    Admin-only: add a role to a user.
    Body: { "role": "Manager" }
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: path
         name: user_id
         type: string
         required: true
      -  in: body
         name: body
         schema:
           type: object
           properties:
             role: { type: string }
    responses:
      200:
        description: OK
      403:
        description: Insufficient role
      404:
        description: User not found
    """
    data = assign_role_schema.load(_payload())
    directory = session_services().directory
    user = directory.find_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    try:
        directory.assign_role(user, data["role"])
    except ValueError as exc:
        abort(422, description=str(exc))
    return jsonify({"data": user_out_schema.dump(user)}), 200
