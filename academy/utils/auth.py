from functools import wraps

from flask import g, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError

from academy.errors import AccessDeniedError, AuthenticationError
from academy.extensions import db
from academy.models import Student
from academy.services.sessions import WEB_SCOPE, authenticate_mobile_token


def bearer_token():
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return None


def _load_web_student():
    verify_jwt_in_request()
    if get_jwt().get("scope") != WEB_SCOPE:
        raise AuthenticationError("Invalid token", "INVALID_TOKEN")

    student = db.session.get(Student, int(get_jwt_identity()))
    if student is None:
        raise AuthenticationError("User not found", "USER_NOT_FOUND")
    return student


def web_auth_required(fn):
    """Require a web access token and expose the caller as ``g.student``."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.student = _load_web_student()
        return fn(*args, **kwargs)
    return wrapper


def role_required(role):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            student = _load_web_student()
            # role is re-read from the database, not trusted from the token
            if student.role != role:
                raise AccessDeniedError("Admin access required" if role == "admin" else "Access denied")
            g.student = student
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def mobile_auth_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.student, g.mobile_session = authenticate_mobile_token(bearer_token())
        return fn(*args, **kwargs)
    return wrapper


def any_auth_required(fn):
    """Accept either a web token or an active mobile session token."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        if not token:
            raise AuthenticationError("Access token required", "NO_TOKEN")

        try:
            g.student = _load_web_student()
            g.mobile_session = None
        except (AuthenticationError, JWTExtendedException, PyJWTError):
            g.student, g.mobile_session = authenticate_mobile_token(token)
        return fn(*args, **kwargs)
    return wrapper
