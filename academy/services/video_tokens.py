"""Short-lived, module-scoped playback tokens.

A token binds only the student's email and a module id. The course is never
carried in the token: it is derived from the module, and the access grant is
checked again every time the token is presented, so revoking a grant takes
effect before the token expires.

Callers only ever see a single "Access denied"; the concrete reason is logged.
"""

import re
from dataclasses import dataclass

from flask import current_app, has_request_context
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import PyJWTError

from academy.errors import AccessDeniedError, NotFoundError, ValidationError
from academy.extensions import db
from academy.helpers.request_info import get_client_ip
from academy.models import CourseModule
from academy.services.access import has_access
from academy.services.sessions import find_student, normalize_email

VIDEO_SCOPE = "video"

YOUTUBE_RE = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})"
)


@dataclass
class PlaybackDescriptor:
    email: str
    module_id: int
    course_id: int
    video_url: str

    @property
    def youtube_id(self):
        return extract_youtube_id(self.video_url)


def extract_youtube_id(url):
    match = YOUTUBE_RE.search(url or "")
    return match.group(1) if match else None


def _deny(reason, email=None, module_id=None):
    ip = get_client_ip() if has_request_context() else "-"
    current_app.logger.warning(f"Video access denied ({reason}) for {email or '-'} module={module_id} ip={ip}")
    return AccessDeniedError("Access denied")


def _resolve(email, module_id):
    """Return ``(student, module)`` only if the grant holds right now."""
    student = find_student(email)
    if student is None:
        raise _deny("unknown user", email, module_id)

    module = db.session.get(CourseModule, module_id)
    if module is None:
        raise _deny("unknown module", email, module_id)

    if not has_access(student.id, module.course_id):
        raise _deny("no course access", email, module_id)

    return student, module


def issue_video_token(email, module_id):
    email = normalize_email(email)
    if not email or not module_id:
        raise ValidationError("Email and moduleId are required")
    try:
        module_id = int(module_id)
    except (TypeError, ValueError):
        raise ValidationError("moduleId must be an integer")

    _resolve(email, module_id)

    token = create_access_token(
        identity=email,
        additional_claims={"scope": VIDEO_SCOPE, "module_id": module_id},
        expires_delta=current_app.config["VIDEO_TOKEN_EXPIRES"],
    )
    current_app.logger.info(f"Issued video token for {email} module={module_id}")
    return token


def verify_video_token(token, module_id):
    """Check a playback token against the requested module and the live grant."""
    if not token:
        raise _deny("no token", module_id=module_id)

    try:
        claims = decode_token(token)
    except (PyJWTError, JWTExtendedException) as e:
        raise _deny(f"invalid or expired token: {e}", module_id=module_id)

    if claims.get("scope") != VIDEO_SCOPE:
        raise _deny("wrong token scope", module_id=module_id)

    email = claims.get("sub")
    if claims.get("module_id") != module_id:
        raise _deny("token bound to another module", email, module_id)

    _, module = _resolve(email, module_id)

    return PlaybackDescriptor(
        email=email,
        module_id=module.id,
        course_id=module.course_id,
        video_url=module.video_url,
    )


def playable_video_id(descriptor):
    video_id = descriptor.youtube_id
    if not video_id:
        raise NotFoundError("Video not found")
    return video_id
