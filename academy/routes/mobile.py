"""Mobile API.

Every response, success or failure, is a ``{success, message, code, data?}``
envelope and carries the ``X-Mobile-API`` version header.
"""

from flask import Blueprint, g, jsonify

from academy.errors import AccessDeniedError, NotFoundError
from academy.extensions import db
from academy.helpers.request_info import get_client_ip, get_json_body
from academy.models import Course
from academy.services import courses, progress, sessions, sync
from academy.services.access import has_access
from academy.utils import mobile_auth_required

MOBILE_API_VERSION = "v1.0"

bp = Blueprint("mobile", __name__)


def envelope(data=None, message=None, status=200):
    body = {"success": True, "code": "OK"}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return jsonify(body), status


@bp.after_request
def add_version_header(response):
    response.headers["X-Mobile-API"] = MOBILE_API_VERSION
    return response


@bp.route("/auth/login", methods=["POST"])
def login():
    data = get_json_body()
    device = {
        "deviceId": data.get("deviceId"),
        "deviceType": data.get("deviceType"),
        "deviceName": data.get("deviceName"),
        "pushToken": data.get("pushToken"),
        "appVersion": data.get("appVersion"),
        "osVersion": data.get("osVersion"),
        "ipAddress": get_client_ip(),
    }
    student, tokens = sessions.mobile_login(data.get("email"), data.get("password"), device)
    return envelope({"user": student.to_dict(), "tokens": tokens}, message="Login successful")


@bp.route("/auth/refresh", methods=["POST"])
def refresh():
    data = get_json_body()
    return envelope(sessions.refresh_mobile_session(data.get("refreshToken")))


@bp.route("/auth/logout", methods=["POST"])
@mobile_auth_required
def logout():
    sessions.mobile_logout(g.mobile_session)
    return envelope(message="Logged out successfully")


@bp.route("/courses", methods=["GET"])
@mobile_auth_required
def list_courses():
    return envelope({"courses": courses.courses_for_student(g.student.id)})


@bp.route("/course/<int:course_id>/modules", methods=["GET"])
@mobile_auth_required
def course_modules(course_id):
    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found", "COURSE_NOT_FOUND")
    if not has_access(g.student.id, course_id):
        raise AccessDeniedError("No access to this course", "NO_COURSE_ACCESS")

    watched = progress.module_progress(g.student.id, course_id)
    modules = []
    for module in courses.list_modules(course_id):
        item = module.to_dict()
        row = watched.get(module.id)
        item["progress"] = row.to_dict() if row else None
        modules.append(item)

    return envelope({"course": course.to_dict(), "modules": modules})


@bp.route("/dashboard", methods=["GET"])
@mobile_auth_required
def dashboard():
    return envelope(progress.dashboard(g.student.id))


@bp.route("/video/progress", methods=["POST"])
@mobile_auth_required
def video_progress():
    data = get_json_body()
    row = progress.record_progress(
        g.student.id,
        data.get("moduleId"),
        data.get("courseId"),
        data.get("watchedDuration"),
        data.get("totalDuration"),
        data.get("currentPosition"),
    )
    return envelope({"progress": row.to_dict()}, message="Progress updated successfully")


@bp.route("/sync", methods=["POST"])
@mobile_auth_required
def sync_offline_data():
    data = get_json_body()
    results = sync.reconcile(g.student.id, g.mobile_session.device_id, data.get("syncData"))
    return envelope({"results": results})
