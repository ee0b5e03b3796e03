from flask import Blueprint, current_app, g, jsonify

from academy.helpers.request_info import get_client_ip, get_json_body
from academy.services import accounts
from academy.services.sessions import authenticate, issue_web_token
from academy.utils import web_auth_required

bp = Blueprint("auth", __name__)


@bp.route("/register", methods=["POST"])
def register():
    data = get_json_body()
    accounts.start_registration(
        data.get("name"),
        data.get("email"),
        data.get("phone"),
        data.get("password"),
    )
    return jsonify({"message": "OTP sent to your email. Please verify to complete registration."}), 200


@bp.route("/verify-registration", methods=["POST"])
def verify_registration():
    data = get_json_body()
    student = accounts.complete_registration(data.get("email"), data.get("otp"))
    return jsonify({"message": "Registration successful", "userId": student.id}), 201


@bp.route("/login", methods=["POST"])
def login():
    data = get_json_body()
    student = authenticate(data.get("email"), data.get("password"))

    current_app.logger.info(f"Web login for user {student.id} from {get_client_ip()}")
    return jsonify({
        "message": "Login successful",
        "user": student.to_dict(),
        "access_token": issue_web_token(student),
    }), 200


@bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    data = get_json_body()
    accounts.start_password_reset(data.get("email"))
    return jsonify({"message": "OTP sent to your email"}), 200


@bp.route("/verify-otp", methods=["POST"])
def verify_otp():
    data = get_json_body()
    accounts.verify_reset_code(data.get("email"), data.get("otp"))
    return jsonify({"message": "OTP verified successfully"}), 200


@bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = get_json_body()
    accounts.reset_password(data.get("email"), data.get("otp"), data.get("password"))
    return jsonify({"message": "Password reset successful"}), 200


@bp.route("/update-profile", methods=["POST"])
@web_auth_required
def update_profile():
    data = get_json_body()
    student = accounts.update_profile(g.student, data.get("name"), data.get("email"), data.get("phone"))
    return jsonify({"message": "Profile updated successfully", "user": student.to_dict()}), 200
