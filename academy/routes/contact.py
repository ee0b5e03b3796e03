from flask import Blueprint, current_app, jsonify, render_template

from academy.errors import DeliveryError, ValidationError
from academy.helpers.request_info import get_client_ip, get_json_body
from academy.services.accounts import validate_email
from academy.utils.mailer import send_email

bp = Blueprint("contact", __name__)


@bp.route("/contact", methods=["POST"])
def contact():
    data = get_json_body()
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip()
    phone = data.get("phone")
    message = (data.get("message") or "").strip()

    if not name or not email or not message:
        raise ValidationError("Name, email and message are required")
    validate_email(email)

    context = {"name": name, "email": email, "phone": phone, "message": message}
    try:
        send_email(
            to=current_app.config["ADMIN_EMAIL"],
            subject="New Contact Form Submission",
            body=render_template("emails/contact_admin.txt", **context),
            html=render_template("emails/contact_admin.html", **context),
            reply_to=email,
        )
        send_email(
            to=email,
            subject="Thank you for contacting us",
            body=render_template("emails/contact_confirmation.txt", **context),
        )
    except Exception as e:
        raise DeliveryError("Failed to send message") from e

    current_app.logger.info(f"Contact form from {email} ({get_client_ip()})")
    return jsonify({"message": "Message sent successfully"}), 200
