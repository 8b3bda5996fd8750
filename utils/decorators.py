from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app

from services.token_codec import InvalidTokenError


def session_services():
    """The SessionServices bundle built by create_app()."""
    return current_app.extensions["auth_sessions"]


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()

            services = session_services()
            try:
                decoded = services.codec.verify_access_token(token)
            except InvalidTokenError:
                abort(401, description="Invalid or expired access token")

            user = services.directory.find_user(decoded.get("sub"))
            if not user:
                abort(401, description="User not found")
            g.current_user = user
            g.current_user_roles = decoded.get("roles", [])
            g.current_token_jti = decoded.get("jti")
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access if the user has ANY of the required roles.
    Deny (403) only if there is NO overlap between user_roles and required_roles.
    """
    req = set(required_roles or [])

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            user_roles = set(getattr(g, "current_user_roles", []))
            if not (user_roles & req):
                abort(403, description="Insufficient role")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
