import secrets
from datetime import datetime

from flask import current_app
from werkzeug.security import check_password_hash, generate_password_hash

from academy.errors import ValidationError
from academy.extensions import db
from academy.models import OneTimeCode

REGISTRATION = "registration"
PASSWORD_RESET = "password_reset"


def generate_code():
    return f"{secrets.randbelow(900000) + 100000}"


def issue_code(email, purpose, payload=None):
    """Create or replace the code for ``(email, purpose)``; returns the plain code.

    The caller commits, so a failed delivery can be rolled back with it.
    """
    code = generate_code()
    record = OneTimeCode.query.filter_by(email=email, purpose=purpose).first()
    if record is None:
        record = OneTimeCode(email=email, purpose=purpose)
        db.session.add(record)

    record.code_hash = generate_password_hash(code)
    record.payload = payload
    record.created_at = datetime.utcnow()
    record.expires_at = record.created_at + current_app.config["OTP_EXPIRES"]
    return code


def check_code(email, purpose, code):
    """Validate a submitted code and return its record without consuming it."""
    record = OneTimeCode.query.filter_by(email=email, purpose=purpose).first()
    if record is None:
        raise ValidationError("No OTP found for this email", "NO_OTP")

    if record.is_expired():
        db.session.delete(record)
        db.session.commit()
        raise ValidationError("OTP has expired", "OTP_EXPIRED")

    if not code or not check_password_hash(record.code_hash, str(code).strip()):
        raise ValidationError("Invalid OTP", "INVALID_OTP")

    return record


def consume_code(record):
    db.session.delete(record)
