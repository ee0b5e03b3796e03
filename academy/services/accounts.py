import re

from flask import current_app, render_template
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash

from academy.errors import ConflictError, DeliveryError, NotFoundError, ValidationError
from academy.extensions import db
from academy.models import EnrollmentRequest, Student
from academy.services import otp
from academy.services.sessions import find_student, normalize_email
from academy.utils.mailer import notify, send_email

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


def validate_email(email):
    if not EMAIL_RE.match(email or ""):
        raise ValidationError("Invalid email format")


def validate_password(password):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def start_registration(name, email, phone, password):
    """Hold the sign-up data against an emailed code until it is verified."""
    email = normalize_email(email)
    name = (name or "").strip()
    if not all([name, email, phone, password]):
        raise ValidationError("All fields are required")
    validate_email(email)
    validate_password(password)

    if find_student(email):
        raise ConflictError("User with this email already exists", "USER_EXISTS")

    code = otp.issue_code(email, otp.REGISTRATION, payload={
        "name": name,
        "phone": phone,
        "password_hash": generate_password_hash(password),
    })

    minutes = int(current_app.config["OTP_EXPIRES"].total_seconds() // 60)
    try:
        send_email(
            to=email,
            subject="Email Verification OTP",
            body=render_template("emails/verify_email.txt", name=name, code=code, minutes=minutes),
            html=render_template("emails/verify_email.html", name=name, code=code, minutes=minutes),
        )
    except Exception as e:
        db.session.rollback()
        raise DeliveryError("Unable to send verification email") from e

    db.session.commit()


def complete_registration(email, code):
    email = normalize_email(email)
    if not email or not code:
        raise ValidationError("Email and OTP are required")

    record = otp.check_code(email, otp.REGISTRATION, code)
    data = record.payload or {}

    student = Student(
        name=data.get("name"),
        email=email,
        phone=data.get("phone"),
        password_hash=data.get("password_hash"),
    )
    db.session.add(student)
    otp.consume_code(record)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ConflictError("User with this email already exists", "USER_EXISTS") from e

    current_app.logger.info(f"Registered student {student.id} <{email}>")
    return student


def start_password_reset(email):
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")

    student = find_student(email)
    if not student:
        raise NotFoundError("No account found with this email")

    code = otp.issue_code(email, otp.PASSWORD_RESET)
    minutes = int(current_app.config["OTP_EXPIRES"].total_seconds() // 60)
    try:
        send_email(
            to=email,
            subject="Password Reset OTP",
            body=render_template("emails/reset_password.txt", name=student.name, code=code, minutes=minutes),
            html=render_template("emails/reset_password.html", name=student.name, code=code, minutes=minutes),
        )
    except Exception as e:
        db.session.rollback()
        raise DeliveryError("Failed to send OTP email") from e

    db.session.commit()


def verify_reset_code(email, code):
    email = normalize_email(email)
    if not email or not code:
        raise ValidationError("Email and OTP are required")
    otp.check_code(email, otp.PASSWORD_RESET, code)


def reset_password(email, code, password):
    email = normalize_email(email)
    if not all([email, code, password]):
        raise ValidationError("Email, OTP, and password are required")
    validate_password(password)

    record = otp.check_code(email, otp.PASSWORD_RESET, code)
    student = find_student(email)
    if not student:
        raise NotFoundError("User not found")

    student.set_password(password)
    otp.consume_code(record)
    db.session.commit()

    notify(
        email,
        "Password Reset Successful",
        "Your password has been reset successfully. If you didn't make this change, "
        "please contact support immediately.",
    )


def update_profile(student, name, email, phone=None):
    """Update name/email/phone; an email change follows through to enrollment requests."""
    name = (name or "").strip()
    email = normalize_email(email)
    if not name or not email:
        raise ValidationError("Name and email are required")
    validate_email(email)

    old_email = student.email
    if email != old_email:
        if find_student(email):
            raise ConflictError("Email is already in use", "EMAIL_IN_USE")
        EnrollmentRequest.query.filter_by(student_email=old_email).update({"student_email": email})

    student.name = name
    student.email = email
    student.phone = phone or None
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ConflictError("Email is already in use", "EMAIL_IN_USE") from e

    return student
