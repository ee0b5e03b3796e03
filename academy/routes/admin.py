from flask import Blueprint, current_app, g, jsonify, request

from academy.errors import ValidationError
from academy.helpers.request_info import get_json_body
from academy.services import enrollment
from academy.utils import role_required

bp = Blueprint("admin", __name__)


@bp.route("/admin-check", methods=["GET"])
@role_required("admin")
def list_enrollment_requests():
    """Enrollment requests for review, newest first; ``?status=0|1|2`` filters."""
    status = request.args.get("status")
    if status is not None:
        try:
            status = int(status)
        except ValueError:
            raise ValidationError("status must be 0, 1 or 2")

    records = enrollment.list_requests(status)
    return jsonify({"data": [r.to_dict() for r in records]}), 200


@bp.route("/admin-approve", methods=["POST"])
@role_required("admin")
def approve_enrollment():
    data = get_json_body()
    record = enrollment.approve_request(data.get("email"), data.get("courseId"))
    current_app.logger.info(f"Admin {g.student.id} approved enrollment {record.id}")
    return jsonify({"message": "Registration approved successfully", "status": record.status}), 200


@bp.route("/admin-reject", methods=["POST"])
@role_required("admin")
def reject_enrollment():
    data = get_json_body()
    record = enrollment.reject_request(data.get("email"), data.get("courseId"), data.get("reason"))
    current_app.logger.info(f"Admin {g.student.id} rejected enrollment {record.id}")
    return jsonify({"message": "Registration rejected", "status": record.status}), 200
