"""Enrollment ledger.

A request moves pending -> approved (creating the access grant) or
pending -> rejected. Only one open (pending or approved) request may exist per
email and course; a rejected one does not block a new request.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation

from flask import current_app, render_template
from sqlalchemy.exc import IntegrityError

from academy.errors import ConflictError, NotFoundError, ValidationError
from academy.extensions import db
from academy.models import AccessGrant, Course, EnrollmentRequest
from academy.models.enrollment import APPROVED, PENDING, REJECTED
from academy.services.access import has_access
from academy.services.sessions import find_student, normalize_email
from academy.utils.mailer import notify

NO_RECORD = -1


def _parse_course_id(course_id):
    try:
        return int(course_id)
    except (TypeError, ValueError):
        raise ValidationError("courseId must be an integer")


def _parse_amount(amount):
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError("amount must be a number")
    if not value.is_finite() or value <= 0:
        raise ValidationError("amount must be positive")
    return value


def _open_request(email, course_id):
    return EnrollmentRequest.query.filter(
        EnrollmentRequest.student_email == email,
        EnrollmentRequest.course_id == course_id,
        EnrollmentRequest.status != REJECTED,
    ).first()


def submit_request(name, email, course_id, transaction_id, amount, referral_id=None, course_name=None):
    email = normalize_email(email)
    name = (name or "").strip()
    if not all([name, email, course_id, transaction_id, amount]):
        raise ValidationError("All fields are required")

    course_id = _parse_course_id(course_id)
    amount = _parse_amount(amount)

    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found")

    if _open_request(email, course_id):
        raise ConflictError("You already have a pending registration for this course", "DUPLICATE_REQUEST")

    student = find_student(email)
    if student and has_access(student.id, course_id):
        raise ConflictError("You already have access to this course", "ALREADY_ENROLLED")

    request_row = EnrollmentRequest(
        student_name=name,
        student_email=email,
        course_id=course_id,
        course_name=course_name or course.title,
        transaction_id=str(transaction_id).strip(),
        referral_id=referral_id or None,
        amount=amount,
        status=PENDING,
    )
    db.session.add(request_row)
    try:
        db.session.commit()
    except IntegrityError as e:
        # lost a race against a concurrent submit for the same pair
        db.session.rollback()
        raise ConflictError("You already have a pending registration for this course", "DUPLICATE_REQUEST") from e

    current_app.logger.info(f"Enrollment request {request_row.id} submitted by {email} for course {course_id}")
    return request_row


def request_status(email, course_id):
    """Return the ledger status for ``(email, course_id)``, or -1 with no record."""
    email = normalize_email(email)
    if not email or not course_id:
        raise ValidationError("Email and courseId are required")
    course_id = _parse_course_id(course_id)

    record = _open_request(email, course_id)
    if record is None:
        record = (
            EnrollmentRequest.query.filter_by(student_email=email, course_id=course_id)
            .order_by(EnrollmentRequest.created_at.desc())
            .first()
        )
    return record.status if record else NO_RECORD


def list_requests(status=None):
    query = EnrollmentRequest.query
    if status is not None:
        query = query.filter_by(status=status)
    return query.order_by(EnrollmentRequest.created_at.desc()).all()


def _pending_request(email, course_id):
    email = normalize_email(email)
    if not email or not course_id:
        raise ValidationError("Email and courseId are required")
    course_id = _parse_course_id(course_id)

    record = EnrollmentRequest.query.filter_by(student_email=email, course_id=course_id, status=PENDING).first()
    if record is None:
        raise NotFoundError("No pending registration found")
    return record


def approve_request(email, course_id):
    """Approve a pending request and grant access in one commit, then notify."""
    record = _pending_request(email, course_id)

    student = find_student(record.student_email)
    if student is None:
        raise NotFoundError("User not found")

    try:
        # guarded flip: a concurrent approval leaves nothing to update
        updated = EnrollmentRequest.query.filter_by(id=record.id, status=PENDING).update(
            {"status": APPROVED, "reviewed_at": datetime.utcnow()},
            synchronize_session="fetch",
        )
        if not updated:
            db.session.rollback()
            raise NotFoundError("No pending registration found")

        if not has_access(student.id, record.course_id):
            db.session.add(AccessGrant(student_id=student.id, course_id=record.course_id))
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ConflictError("Registration could not be approved", "APPROVAL_CONFLICT") from e

    current_app.logger.info(f"Approved enrollment {record.id}: student {student.id} -> course {record.course_id}")

    notify(
        student.email,
        "Course Registration Approved",
        f"Your registration for {record.course_name} has been approved.",
        html=render_template("emails/enrollment_approved.html", name=student.name, course_name=record.course_name),
    )
    return record


def reject_request(email, course_id, reason=None):
    record = _pending_request(email, course_id)

    updated = EnrollmentRequest.query.filter_by(id=record.id, status=PENDING).update(
        {"status": REJECTED, "reviewed_at": datetime.utcnow(), "rejection_reason": reason or None},
        synchronize_session="fetch",
    )
    if not updated:
        db.session.rollback()
        raise NotFoundError("No pending registration found")
    db.session.commit()

    current_app.logger.info(f"Rejected enrollment {record.id} for {record.student_email}")

    notify(
        record.student_email,
        "Course Registration Update",
        f"Your registration for {record.course_name} could not be approved.",
        html=render_template(
            "emails/enrollment_rejected.html",
            name=record.student_name,
            course_name=record.course_name,
            reason=reason,
        ),
    )
    return record
