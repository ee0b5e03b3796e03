from flask import Blueprint, jsonify

from academy.helpers.request_info import get_json_body
from academy.services import enrollment

bp = Blueprint("enrollments", __name__)


@bp.route("/pending", methods=["POST"])
def submit_enrollment():
    data = get_json_body()
    record = enrollment.submit_request(
        name=data.get("name"),
        email=data.get("email"),
        course_id=data.get("courseId"),
        transaction_id=data.get("transactionId") or data.get("transid"),
        amount=data.get("amount") or data.get("amt"),
        referral_id=data.get("referralId") or data.get("refid"),
        course_name=data.get("courseName"),
    )
    return jsonify({"message": "Registration is under review", "value": record.status, "id": record.id}), 200


@bp.route("/pending-check", methods=["POST"])
def check_enrollment():
    data = get_json_body()
    status = enrollment.request_status(data.get("email"), data.get("courseId"))
    if status == enrollment.NO_RECORD:
        return jsonify({"message": "No registration found", "value": status}), 200
    return jsonify({"message": "Registration status found", "value": status}), 200
