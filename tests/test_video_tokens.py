import time
from datetime import timedelta

import pytest

from academy.errors import AccessDeniedError, NotFoundError
from academy.extensions import db
from academy.models import AccessGrant
from academy.services.video_tokens import (
    extract_youtube_id,
    issue_video_token,
    playable_video_id,
    verify_video_token,
)


@pytest.fixture
def enrolled(student, course, grant):
    grant(student, course)
    return student, course


def _token(client, headers, module_id, **extra):
    return client.post("/api/generate-video-token", headers=headers, json=dict(moduleId=module_id, **extra))


def test_issue_and_stream(client, enrolled, web_headers):
    student, course = enrolled
    module = course.modules[0]

    resp = _token(client, web_headers(student), module.id)
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    page = client.get(f"/api/secure-video/{module.id}?token={token}")
    assert page.status_code == 200
    assert page.headers["Cache-Control"].startswith("no-store")
    html = page.get_data(as_text=True)
    assert '"dQw4w9WgXcQ"' in html
    assert student.email in html
    assert "youtube.com/watch" not in html

    # repeatable until expiry
    assert client.get(f"/api/secure-video/{module.id}?token={token}").status_code == 200


def test_issue_with_mobile_session(client, enrolled, mobile_headers):
    _, course = enrolled
    resp = _token(client, mobile_headers(), course.modules[0].id)
    assert resp.status_code == 200


def test_issue_requires_credentials(client, enrolled):
    _, course = enrolled
    resp = _token(client, {}, course.modules[0].id)
    assert resp.status_code == 401


def test_issue_for_someone_else_is_denied(client, enrolled, make_student, web_headers):
    _, course = enrolled
    other = make_student(email="other@example.com")
    resp = _token(client, web_headers(other), course.modules[0].id, email="student@example.com")
    assert resp.status_code == 403


def test_denials_are_indistinguishable(client, student, course, make_course, web_headers):
    headers = web_headers(student)
    no_grant = _token(client, headers, course.modules[0].id)
    no_module = _token(client, headers, 99999)

    assert no_grant.status_code == no_module.status_code == 403
    assert no_grant.get_json() == no_module.get_json() == {"message": "Access denied"}


def test_issue_requires_module_id(client, enrolled, web_headers):
    student, _ = enrolled
    resp = client.post("/api/generate-video-token", headers=web_headers(student), json={})
    assert resp.status_code == 400


def test_token_is_bound_to_one_module(client, enrolled, web_headers):
    student, course = enrolled
    first, second = course.modules[0], course.modules[1]
    token = _token(client, web_headers(student), first.id).get_json()["token"]

    resp = client.get(f"/api/secure-video/{second.id}?token={token}")
    assert resp.status_code == 403


def test_token_expires(app, client, enrolled):
    student, course = enrolled
    module_id = course.modules[0].id
    app.config["VIDEO_TOKEN_EXPIRES"] = timedelta(seconds=2)

    token = issue_video_token(student.email, module_id)
    assert client.get(f"/api/secure-video/{module_id}?token={token}").status_code == 200

    time.sleep(3)
    assert client.get(f"/api/secure-video/{module_id}?token={token}").status_code == 403


def test_revoked_grant_is_honoured_before_expiry(app, enrolled):
    student, course = enrolled
    module_id = course.modules[0].id
    token = issue_video_token(student.email, module_id)
    assert verify_video_token(token, module_id).course_id == course.id

    AccessGrant.query.filter_by(student_id=student.id).delete()
    db.session.commit()

    with pytest.raises(AccessDeniedError):
        verify_video_token(token, module_id)


def test_other_credentials_are_not_video_tokens(client, enrolled, web_headers, mobile_login):
    student, course = enrolled
    module_id = course.modules[0].id
    web_token = web_headers(student)["Authorization"].split(" ", 1)[1]
    session_token = mobile_login()["sessionToken"]

    for token in (web_token, session_token, "garbage"):
        assert client.get(f"/api/secure-video/{module_id}?token={token}").status_code == 403
    assert client.get(f"/api/secure-video/{module_id}").status_code == 403


def test_video_token_is_not_a_session(client, enrolled, web_headers):
    student, course = enrolled
    token = _token(client, web_headers(student), course.modules[0].id).get_json()["token"]
    headers = {"Authorization": f"Bearer {token}"}

    assert client.get("/api/mobile/dashboard", headers=headers).status_code == 401
    assert client.post("/api/update-profile", headers=headers, json={"name": "x", "email": "x@example.com"}).status_code == 401


def test_descriptor_without_youtube_locator(app, student, make_course, grant):
    course = make_course(video_url="https://vimeo.com/12345")
    grant(student, course)
    module_id = course.modules[0].id

    descriptor = verify_video_token(issue_video_token(student.email, module_id), module_id)
    with pytest.raises(NotFoundError):
        playable_video_id(descriptor)


def test_unplayable_module_is_404_only_after_authorization(client, student, make_course, grant, web_headers):
    course = make_course(video_url=None)
    grant(student, course)
    module_id = course.modules[0].id

    token = _token(client, web_headers(student), module_id).get_json()["token"]
    assert client.get(f"/api/secure-video/{module_id}?token={token}").status_code == 404
    assert client.get(f"/api/secure-video/{module_id}?token=bad").status_code == 403


@pytest.mark.parametrize("url", [
    "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
    "https://youtu.be/dQw4w9WgXcQ",
    "https://www.youtube.com/embed/dQw4w9WgXcQ",
    "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
])
def test_extract_youtube_id(url):
    assert extract_youtube_id(url) == "dQw4w9WgXcQ"


def test_extract_youtube_id_rejects_other_hosts():
    assert extract_youtube_id("https://example.com/video.mp4") is None
    assert extract_youtube_id(None) is None
