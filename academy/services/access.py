"""Access grant index: who may consume which course.

Grants are only ever read here; they are created by enrollment approval and
removed by cascade when the student or the course goes away.
"""

from academy.models import AccessGrant
from academy.services.sessions import find_student


def get_grant(student_id, course_id):
    return AccessGrant.query.filter_by(student_id=student_id, course_id=course_id).first()


def has_access(student_id, course_id):
    return get_grant(student_id, course_id) is not None


def granted_course_ids(student_id):
    rows = AccessGrant.query.with_entities(AccessGrant.course_id).filter_by(student_id=student_id).all()
    return {row.course_id for row in rows}


def check_course_access(email, course_id):
    student = find_student(email)
    if student is None:
        return None

    return get_grant(student.id, course_id)
