"""Per-module watch progress with a monotonic merge.

Watched duration and percentage never go down and a completed module stays
completed; total duration and last position are simply overwritten.
"""

import math
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from academy.errors import AccessDeniedError, NotFoundError, ValidationError
from academy.extensions import db
from academy.models import AccessGrant, Course, CourseModule, VideoProgress
from academy.services.access import has_access

COMPLETION_THRESHOLD = 90.0
RECENT_ACTIVITY_LIMIT = 5


def _number(value, field, default=None):
    if value is None:
        if default is None:
            raise ValidationError(f"{field} is required", "MISSING_FIELDS")
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(number) or number < 0:
        raise ValidationError(f"{field} must be a non-negative number")
    return number


def _id(value, field):
    if value is None or value == "":
        raise ValidationError(f"{field} is required", "MISSING_FIELDS")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")


def watched_percentage(watched, total):
    if total <= 0:
        return 0.0
    return min(watched / total * 100, 100.0)


def merge_progress(row, watched, total, position):
    """Fold one observation into ``row`` (which may be brand new)."""
    percentage = watched_percentage(watched, total)
    row.watched_duration = max(row.watched_duration or 0.0, watched)
    row.watched_percentage = max(row.watched_percentage or 0.0, percentage)
    row.completed = bool(row.completed) or percentage >= COMPLETION_THRESHOLD
    row.total_duration = total
    row.last_watched_position = position
    row.last_watched = datetime.utcnow()
    return row


def _apply(user_id, module_id, course_id, watched, total, position):
    row = VideoProgress.query.filter_by(user_id=user_id, module_id=module_id).first()
    if row is None:
        row = VideoProgress(user_id=user_id, module_id=module_id, course_id=course_id)
        db.session.add(row)
    merge_progress(row, watched, total, position)
    db.session.commit()
    return row


def record_progress(user_id, module_id, course_id, watched_duration, total_duration, current_position=None):
    """Validate and merge a progress report; commits on success."""
    module_id = _id(module_id, "moduleId")
    course_id = _id(course_id, "courseId")
    watched = _number(watched_duration, "watchedDuration")
    total = _number(total_duration, "totalDuration")
    position = _number(current_position, "currentPosition", default=0.0)

    module = db.session.get(CourseModule, module_id)
    if module is None:
        raise NotFoundError("Module not found", "MODULE_NOT_FOUND")
    if module.course_id != course_id:
        raise ValidationError("Module does not belong to this course", "COURSE_MISMATCH")
    if not has_access(user_id, course_id):
        raise AccessDeniedError("No access to this course", "NO_COURSE_ACCESS")

    try:
        return _apply(user_id, module_id, course_id, watched, total, position)
    except IntegrityError:
        # a concurrent first insert won; merge into its row instead
        db.session.rollback()
        current_app.logger.info(f"Progress insert race for user {user_id} module {module_id}, retrying")
        return _apply(user_id, module_id, course_id, watched, total, position)


def dashboard(user_id):
    grants = (
        db.session.query(AccessGrant, Course)
        .join(Course, AccessGrant.course_id == Course.id)
        .filter(AccessGrant.student_id == user_id)
        .order_by(AccessGrant.granted_at)
        .all()
    )

    rows = VideoProgress.query.filter_by(user_id=user_id).all()
    by_course = {}
    for row in rows:
        by_course.setdefault(row.course_id, []).append(row)

    courses = []
    for grant, course in grants:
        course_rows = by_course.get(course.id, [])
        total_modules = course.total_modules
        completed_modules = sum(1 for row in course_rows if row.completed)
        if total_modules:
            overall = min(sum(row.watched_percentage for row in course_rows) / total_modules, 100.0)
        else:
            overall = 0.0
        courses.append({
            "id": course.id,
            "title": course.title,
            "description": course.description,
            "thumbnail": course.thumbnail,
            "accessGranted": grant.granted_at.isoformat(),
            "totalModules": total_modules,
            "completedModules": completed_modules,
            "overallProgress": round(overall, 2),
        })

    recent = (
        db.session.query(VideoProgress, CourseModule, Course)
        .join(CourseModule, VideoProgress.module_id == CourseModule.id)
        .join(Course, VideoProgress.course_id == Course.id)
        .filter(VideoProgress.user_id == user_id)
        .order_by(VideoProgress.last_watched.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    recent_activity = [
        {
            "moduleId": module.id,
            "moduleTitle": module.title,
            "courseTitle": course.title,
            "lastWatched": row.last_watched.isoformat() if row.last_watched else None,
            "watchedPercentage": round(row.watched_percentage, 2),
        }
        for row, module, course in recent
    ]

    return {
        "courses": courses,
        "recentActivity": recent_activity,
        "stats": {
            "totalCourses": len(courses),
            "completedCourses": sum(1 for c in courses if c["overallProgress"] >= COMPLETION_THRESHOLD),
            "totalWatchTime": round(sum(row.watched_duration for row in rows), 2),
        },
    }


def module_progress(user_id, course_id):
    rows = VideoProgress.query.filter_by(user_id=user_id, course_id=course_id).all()
    return {row.module_id: row for row in rows}
