import pytest

from academy import create_app
from academy.config import TestingConfig
from academy.extensions import db, mail
from academy.models import AccessGrant, Course, CourseModule, ModuleMaterial, Student
from academy.services.sessions import issue_web_token

PASSWORD = "secret123"


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def outbox(app):
    with mail.record_messages() as messages:
        yield messages


@pytest.fixture
def make_student(app):
    def _make(email="student@example.com", name="Test Student", password=PASSWORD, role="student"):
        student = Student(name=name, email=email, phone="5550100", role=role)
        student.set_password(password)
        db.session.add(student)
        db.session.commit()
        return student
    return _make


@pytest.fixture
def student(make_student):
    return make_student()


@pytest.fixture
def admin(make_student):
    return make_student(email="admin@example.com", name="Admin", role="admin")


@pytest.fixture
def make_course(app):
    def _make(title="Python Basics", modules=3, video_url="https://www.youtube.com/watch?v=dQw4w9WgXcQ"):
        course = Course(title=title, description=f"{title} course")
        db.session.add(course)
        db.session.flush()
        for day in range(1, modules + 1):
            module = CourseModule(course_id=course.id, title=f"Day {day}", day=day, week=1, video_url=video_url)
            db.session.add(module)
            db.session.flush()
            db.session.add(ModuleMaterial(module_id=module.id, course_id=course.id, material=f"notes-{day}.pdf"))
        db.session.commit()
        return course
    return _make


@pytest.fixture
def course(make_course):
    return make_course()


@pytest.fixture
def grant(app):
    def _grant(student, course):
        record = AccessGrant(student_id=student.id, course_id=course.id)
        db.session.add(record)
        db.session.commit()
        return record
    return _grant


@pytest.fixture
def web_headers(app):
    def _headers(student):
        return {"Authorization": f"Bearer {issue_web_token(student)}"}
    return _headers


@pytest.fixture
def mobile_login(client):
    def _login(email="student@example.com", password=PASSWORD, device_id="device-1"):
        resp = client.post("/api/mobile/auth/login", json={
            "email": email,
            "password": password,
            "deviceId": device_id,
            "deviceType": "android",
            "deviceName": "Pixel",
            "appVersion": "1.0.0",
        })
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()["data"]["tokens"]
    return _login


@pytest.fixture
def mobile_headers(mobile_login):
    def _headers(**kwargs):
        tokens = mobile_login(**kwargs)
        return {"Authorization": f"Bearer {tokens['sessionToken']}"}
    return _headers
