from flask import current_app

from academy.errors import NotFoundError, ValidationError
from academy.extensions import db
from academy.models import Course, CourseModule, ModuleMaterial
from academy.services.access import granted_course_ids


def list_courses():
    return Course.query.order_by(Course.id).all()


def list_modules(course_id):
    return CourseModule.query.filter_by(course_id=course_id).order_by(CourseModule.day, CourseModule.id).all()


def list_materials(course_id):
    return ModuleMaterial.query.filter_by(course_id=course_id).order_by(ModuleMaterial.id).all()


def _validate_module(module):
    if not isinstance(module, dict):
        raise ValidationError("Invalid module data")
    if not all([module.get("title"), module.get("day"), module.get("week"), module.get("videoUrl")]):
        raise ValidationError("Invalid module data")
    try:
        return int(module["day"]), int(module["week"])
    except (TypeError, ValueError):
        raise ValidationError("Module day and week must be integers")


def create_course(title, description, modules, thumbnail=None, syllabus=None):
    """Create a course with its modules and materials as one unit of work."""
    if not title or not description or not isinstance(modules, list) or not modules:
        raise ValidationError("Invalid course data")

    course = Course(title=title, description=description, thumbnail=thumbnail or "", syllabus=syllabus or "")
    db.session.add(course)

    try:
        for module_data in modules:
            day, week = _validate_module(module_data)
            module = CourseModule(
                course=course,
                title=module_data["title"],
                day=day,
                week=week,
                video_url=module_data["videoUrl"],
            )
            db.session.add(module)
            db.session.flush()

            materials = module_data.get("materials") or []
            if not isinstance(materials, list):
                raise ValidationError("Module materials must be a list")
            for material in materials:
                db.session.add(ModuleMaterial(module_id=module.id, course_id=course.id, material=str(material)))

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(f"Created course {course.id} '{course.title}' with {len(modules)} modules")
    return course


def delete_course(course_id):
    course = db.session.get(Course, course_id)
    if course is None:
        raise NotFoundError("Course not found")

    db.session.delete(course)
    db.session.commit()
    current_app.logger.info(f"Deleted course {course_id}")


def courses_for_student(student_id):
    """All courses, each flagged with whether the student may open it."""
    granted = granted_course_ids(student_id)
    return [
        dict(course.to_dict(), hasAccess=course.id in granted)
        for course in list_courses()
    ]
