"""Credential and session store.

Two channels share the ``students`` table:

* web: a stateless access token (scope ``web``), no server-side row and no
  refresh; when it expires the client logs in again.
* mobile: a session token plus a refresh token (scope ``mobile``), whose JWT
  ids are persisted per device so they can be revoked and silently renewed.
"""

from datetime import datetime

from flask import current_app
from flask_jwt_extended import create_access_token, create_refresh_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError

from academy.errors import AuthenticationError, ValidationError
from academy.extensions import db
from academy.models import MobileSession, Student, UserDevice

WEB_SCOPE = "web"
MOBILE_SCOPE = "mobile"


def normalize_email(email):
    return (email or "").strip().lower()


def find_student(email):
    return Student.query.filter_by(email=normalize_email(email)).first()


def authenticate(email, password):
    if not email or not password:
        raise ValidationError("Email and password are required", "MISSING_FIELDS")

    student = find_student(email)
    if not student or not student.check_password(password):
        current_app.logger.info(f"Failed login for {normalize_email(email)}")
        raise AuthenticationError("Invalid email or password")
    return student


def issue_web_token(student):
    return create_access_token(
        identity=str(student.id),
        additional_claims={"scope": WEB_SCOPE, "email": student.email, "role": student.role},
    )


def _decode(token):
    try:
        return decode_token(token)
    except (PyJWTError, JWTExtendedException) as e:
        raise AuthenticationError("Invalid token", "INVALID_TOKEN") from e


def _upsert_device(student, device):
    record = UserDevice.query.filter_by(user_id=student.id, device_id=device["deviceId"]).first()
    if record is None:
        record = UserDevice(user_id=student.id, device_id=device["deviceId"])
        db.session.add(record)

    record.device_type = device["deviceType"]
    record.device_name = device.get("deviceName")
    record.push_token = device.get("pushToken")
    record.app_version = device.get("appVersion")
    record.os_version = device.get("osVersion")
    record.ip_address = device.get("ipAddress")
    record.is_active = True
    record.last_active = datetime.utcnow()
    return record


def mobile_login(email, password, device):
    """Authenticate and open a mobile session bound to ``device['deviceId']``."""
    if not all([email, password, device.get("deviceId"), device.get("deviceType")]):
        raise ValidationError("Email, password, deviceId, and deviceType are required", "MISSING_FIELDS")

    student = authenticate(email, password)
    device_id = device["deviceId"]
    _upsert_device(student, device)

    # single active session per device
    MobileSession.query.filter_by(user_id=student.id, device_id=device_id, is_active=True).update(
        {"is_active": False}
    )

    session_expires = current_app.config["MOBILE_SESSION_EXPIRES"]
    refresh_expires = current_app.config["MOBILE_REFRESH_EXPIRES"]
    claims = {"scope": MOBILE_SCOPE, "email": student.email, "device_id": device_id}
    session_token = create_access_token(identity=str(student.id), additional_claims=claims, expires_delta=session_expires)
    refresh_token = create_refresh_token(identity=str(student.id), additional_claims=claims, expires_delta=refresh_expires)

    now = datetime.utcnow()
    session = MobileSession(
        user_id=student.id,
        device_id=device_id,
        session_jti=decode_token(session_token)["jti"],
        refresh_jti=decode_token(refresh_token)["jti"],
        expires_at=now + session_expires,
        refresh_expires_at=now + refresh_expires,
    )
    db.session.add(session)
    student.last_login_mobile = now
    db.session.commit()

    current_app.logger.info(f"Mobile login for user {student.id} on device {device_id}")
    return student, {
        "sessionToken": session_token,
        "refreshToken": refresh_token,
        "expiresAt": session.expires_at.isoformat() + "Z",
    }


def refresh_mobile_session(refresh_token):
    """Mint a new session token and store it on the same session row."""
    if not refresh_token:
        raise ValidationError("Refresh token required", "NO_REFRESH_TOKEN")

    try:
        claims = _decode(refresh_token)
    except AuthenticationError as e:
        raise AuthenticationError("Invalid refresh token", "INVALID_REFRESH_TOKEN") from e

    if claims.get("type") != "refresh" or claims.get("scope") != MOBILE_SCOPE:
        raise AuthenticationError("Invalid refresh token", "INVALID_REFRESH_TOKEN")

    session = MobileSession.query.filter_by(refresh_jti=claims["jti"], is_active=True).first()
    if session is None or session.refresh_expires_at <= datetime.utcnow():
        raise AuthenticationError("Invalid refresh token", "INVALID_REFRESH_TOKEN")

    session_expires = current_app.config["MOBILE_SESSION_EXPIRES"]
    new_token = create_access_token(
        identity=str(session.user_id),
        additional_claims={
            "scope": MOBILE_SCOPE,
            "email": session.student.email,
            "device_id": session.device_id,
        },
        expires_delta=session_expires,
    )
    session.session_jti = decode_token(new_token)["jti"]
    session.expires_at = datetime.utcnow() + session_expires
    db.session.commit()

    return {"sessionToken": new_token, "expiresAt": session.expires_at.isoformat() + "Z"}


def authenticate_mobile_token(token):
    """Resolve a mobile bearer token to ``(student, session)`` or raise."""
    if not token:
        raise AuthenticationError("Access token required", "NO_TOKEN")

    claims = _decode(token)
    if claims.get("type") != "access" or claims.get("scope") != MOBILE_SCOPE:
        raise AuthenticationError("Invalid token", "INVALID_TOKEN")

    session = MobileSession.query.filter_by(session_jti=claims["jti"], is_active=True).first()
    if session is None or session.expires_at <= datetime.utcnow():
        raise AuthenticationError("Session expired", "SESSION_EXPIRED")

    return session.student, session


def mobile_logout(session):
    session.is_active = False
    device = UserDevice.query.filter_by(user_id=session.user_id, device_id=session.device_id).first()
    if device:
        device.is_active = False
    db.session.commit()
