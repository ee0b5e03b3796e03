from unittest.mock import patch

import pytest

from academy.errors import ConflictError, NotFoundError
from academy.extensions import db
from academy.models import AccessGrant, EnrollmentRequest
from academy.models.enrollment import APPROVED, PENDING, REJECTED
from academy.services import enrollment


def _submit(client, course, email="student@example.com", **extra):
    body = {
        "name": "Test Student",
        "email": email,
        "courseId": course.id,
        "courseName": course.title,
        "transid": "TXN-1001",
        "amt": "499.00",
        "refid": "REF-7",
    }
    body.update(extra)
    return client.post("/api/pending", json=body)


def _status(client, course, email="student@example.com"):
    return client.post("/api/pending-check", json={"email": email, "courseId": course.id}).get_json()["value"]


def test_submit_creates_pending_request(client, course):
    resp = _submit(client, course)
    assert resp.status_code == 200
    assert resp.get_json()["value"] == PENDING

    record = EnrollmentRequest.query.one()
    assert record.transaction_id == "TXN-1001"
    assert record.referral_id == "REF-7"
    assert float(record.amount) == 499.0


def test_status_is_minus_one_without_record(client, course):
    assert _status(client, course) == -1


def test_duplicate_submission_is_rejected(client, course):
    assert _submit(client, course).status_code == 200
    resp = _submit(client, course, transid="TXN-1002")
    assert resp.status_code == 409
    assert EnrollmentRequest.query.count() == 1


def test_submit_unknown_course(client, course):
    resp = client.post("/api/pending", json={
        "name": "A", "email": "a@example.com", "courseId": 9999, "transactionId": "T", "amount": 10,
    })
    assert resp.status_code == 404


@pytest.mark.parametrize("amount", ["abc", -5, 0])
def test_submit_rejects_bad_amount(client, course, amount):
    resp = _submit(client, course, amt=amount)
    assert resp.status_code == 400


def test_submit_requires_fields(client, course):
    resp = client.post("/api/pending", json={"email": "a@example.com", "courseId": course.id})
    assert resp.status_code == 400


def test_submit_blocked_when_student_already_has_access(client, student, course, grant):
    grant(student, course)
    assert _submit(client, course).status_code == 409


def test_open_request_index_blocks_second_open_record(app, course):
    for _ in range(2):
        db.session.add(EnrollmentRequest(
            student_name="A", student_email="a@example.com", course_id=course.id,
            course_name=course.title, transaction_id="T", amount=1, status=PENDING,
        ))
    with pytest.raises(Exception):
        db.session.commit()
    db.session.rollback()


def test_approve_grants_access_and_notifies(client, admin, student, course, web_headers, outbox):
    _submit(client, course)
    resp = client.post("/api/admin-approve", headers=web_headers(admin), json={
        "email": student.email, "courseId": course.id,
    })
    assert resp.status_code == 200
    assert resp.get_json()["status"] == APPROVED
    assert _status(client, course) == APPROVED

    grants = AccessGrant.query.filter_by(student_id=student.id, course_id=course.id).all()
    assert len(grants) == 1
    assert outbox[-1].subject == "Course Registration Approved"
    assert outbox[-1].recipients == [student.email]

    access = client.post("/api/check-course-access", json={"email": student.email, "courseId": course.id})
    assert access.get_json()["hasAccess"] is True
    assert access.get_json()["grantedDate"]


def test_approve_twice_is_not_found_and_grants_once(client, admin, student, course, web_headers):
    _submit(client, course)
    headers = web_headers(admin)
    body = {"email": student.email, "courseId": course.id}

    assert client.post("/api/admin-approve", headers=headers, json=body).status_code == 200
    assert client.post("/api/admin-approve", headers=headers, json=body).status_code == 404
    assert AccessGrant.query.count() == 1


def test_approve_without_pending_request(client, admin, student, course, web_headers):
    resp = client.post("/api/admin-approve", headers=web_headers(admin), json={
        "email": student.email, "courseId": course.id,
    })
    assert resp.status_code == 404
    assert AccessGrant.query.count() == 0


def test_approve_unregistered_email_changes_nothing(client, admin, course, web_headers):
    _submit(client, course, email="ghost@example.com")
    resp = client.post("/api/admin-approve", headers=web_headers(admin), json={
        "email": "ghost@example.com", "courseId": course.id,
    })
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "User not found"
    assert EnrollmentRequest.query.one().status == PENDING
    assert AccessGrant.query.count() == 0


def test_mail_failure_does_not_undo_approval(app, student, course):
    enrollment.submit_request("Test Student", student.email, course.id, "TXN", 100)

    with patch("academy.utils.mailer.mail.send", side_effect=OSError("smtp down")):
        record = enrollment.approve_request(student.email, course.id)

    assert record.status == APPROVED
    assert AccessGrant.query.filter_by(student_id=student.id, course_id=course.id).count() == 1


def test_approval_rolls_back_when_grant_insert_fails(app, student, course):
    enrollment.submit_request("Test Student", student.email, course.id, "TXN", 100)

    with patch("academy.services.enrollment.has_access", return_value=False):
        # a grant already exists, so the insert hits the unique constraint
        db.session.add(AccessGrant(student_id=student.id, course_id=course.id))
        db.session.commit()
        with pytest.raises(ConflictError):
            enrollment.approve_request(student.email, course.id)

    assert EnrollmentRequest.query.one().status == PENDING
    assert AccessGrant.query.count() == 1


def test_reject_then_resubmit(client, admin, student, course, web_headers, outbox):
    _submit(client, course)
    resp = client.post("/api/admin-reject", headers=web_headers(admin), json={
        "email": student.email, "courseId": course.id, "reason": "Payment not received",
    })
    assert resp.status_code == 200
    assert resp.get_json()["status"] == REJECTED
    assert _status(client, course) == REJECTED
    assert EnrollmentRequest.query.one().rejection_reason == "Payment not received"
    assert AccessGrant.query.count() == 0

    # a rejected request does not block a new one
    assert _submit(client, course, transid="TXN-2").status_code == 200
    assert _status(client, course) == PENDING


def test_reject_only_pending(app, student, course):
    enrollment.submit_request("Test Student", student.email, course.id, "TXN", 100)
    enrollment.approve_request(student.email, course.id)

    with pytest.raises(NotFoundError):
        enrollment.reject_request(student.email, course.id)


def test_admin_list_and_filter(client, admin, student, course, make_course, web_headers):
    other = make_course(title="Data Science")
    _submit(client, course)
    _submit(client, other)
    enrollment.approve_request(student.email, course.id)

    headers = web_headers(admin)
    all_rows = client.get("/api/admin-check", headers=headers).get_json()["data"]
    assert len(all_rows) == 2

    pending = client.get("/api/admin-check?status=0", headers=headers).get_json()["data"]
    assert [row["courseId"] for row in pending] == [other.id]


def test_admin_routes_require_admin_role(client, student, web_headers):
    resp = client.get("/api/admin-check", headers=web_headers(student))
    assert resp.status_code == 403

    resp = client.get("/api/admin-check")
    assert resp.status_code == 401


def test_admin_check_rejects_video_token(client, admin, student, course, grant, web_headers):
    grant(admin, course)
    token = client.post(
        "/api/generate-video-token", headers=web_headers(admin), json={"moduleId": course.modules[0].id}
    ).get_json()["token"]

    resp = client.get("/api/admin-check", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
