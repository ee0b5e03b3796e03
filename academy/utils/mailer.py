from flask import current_app
from flask_mail import Message

from academy.extensions import mail


def send_email(to, subject, body, html=None, reply_to=None):
    """Generic email sender; skips messages addressed to our own sender address."""

    sender = current_app.config.get("MAIL_DEFAULT_SENDER")
    recipients = [to] if isinstance(to, str) else list(to)

    if sender in recipients:
        current_app.logger.info(f"Skipped sending email to sender address: {sender}")
        return False

    msg = Message(subject=subject, recipients=recipients, sender=sender, reply_to=reply_to)
    msg.body = body
    if html:
        msg.html = html

    try:
        mail.send(msg)
    except Exception as e:
        current_app.logger.error(f"Failed to send email '{subject}' to {to}: {e}")
        raise

    current_app.logger.info(f"Email '{subject}' sent to {to}")
    return True


def notify(to, subject, body, html=None):
    """Fire-and-forget variant: delivery failures are logged, never raised."""
    try:
        return send_email(to, subject, body, html=html)
    except Exception:
        current_app.logger.warning(f"Notification '{subject}' to {to} was not delivered")
        return False
