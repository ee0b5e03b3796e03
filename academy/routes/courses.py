from flask import Blueprint, jsonify

from academy.errors import ValidationError
from academy.helpers.request_info import get_json_body
from academy.services import courses
from academy.services.access import check_course_access
from academy.utils import role_required

bp = Blueprint("courses", __name__)


@bp.route("/courses", methods=["GET"])
def list_courses():
    return jsonify([course.to_dict() for course in courses.list_courses()]), 200


@bp.route("/courses", methods=["POST"])
@role_required("admin")
def create_course():
    data = get_json_body()
    course = courses.create_course(
        title=data.get("title"),
        description=data.get("description"),
        modules=data.get("modules"),
        thumbnail=data.get("thumbnail"),
        syllabus=data.get("syllabus"),
    )
    return jsonify({"message": "Course created successfully", "courseId": course.id}), 201


@bp.route("/courses/<int:course_id>", methods=["DELETE"])
@role_required("admin")
def delete_course(course_id):
    courses.delete_course(course_id)
    return jsonify({"message": "Course deleted successfully"}), 200


@bp.route("/course-modules/<int:course_id>", methods=["GET"])
def list_course_modules(course_id):
    # video locators stay server-side; playback goes through /secure-video
    return jsonify([module.to_dict() for module in courses.list_modules(course_id)]), 200


@bp.route("/module-materials/<int:course_id>", methods=["GET"])
def list_module_materials(course_id):
    return jsonify([material.to_dict() for material in courses.list_materials(course_id)]), 200


@bp.route("/check-course-access", methods=["POST"])
def check_access():
    data = get_json_body()
    email, course_id = data.get("email"), data.get("courseId")
    if not email or not course_id:
        raise ValidationError("Email and courseId are required")
    try:
        course_id = int(course_id)
    except (TypeError, ValueError):
        raise ValidationError("courseId must be an integer")

    grant = check_course_access(email, course_id)
    if grant is None:
        return jsonify({"hasAccess": False}), 200
    return jsonify({"hasAccess": True, "grantedDate": grant.granted_at.isoformat()}), 200
