from flask import Blueprint, g, jsonify, make_response, render_template, request

from academy.errors import AccessDeniedError
from academy.helpers.request_info import get_json_body
from academy.services.sessions import normalize_email
from academy.services.video_tokens import issue_video_token, playable_video_id, verify_video_token
from academy.utils import any_auth_required

bp = Blueprint("video", __name__)


@bp.route("/generate-video-token", methods=["POST"])
@any_auth_required
def generate_video_token():
    data = get_json_body()
    email = data.get("email")
    # tokens are only ever minted for the authenticated caller
    if email and normalize_email(email) != g.student.email:
        raise AccessDeniedError("Access denied")

    token = issue_video_token(g.student.email, data.get("moduleId"))
    return jsonify({"token": token}), 200


@bp.route("/secure-video/<int:module_id>", methods=["GET"])
def secure_video(module_id):
    descriptor = verify_video_token(request.args.get("token"), module_id)
    video_id = playable_video_id(descriptor)

    html = render_template("secure_player.html", video_id=video_id, email=descriptor.email)
    response = make_response(html, 200)
    response.headers["Content-Type"] = "text/html; charset=utf-8"
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, private"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    response.headers["X-Frame-Options"] = "SAMEORIGIN"
    return response
