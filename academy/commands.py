import click

from .extensions import db
from .models import Student
from .services.courses import create_course
from .services.sessions import find_student, normalize_email

SAMPLE_COURSE = {
    "title": "Foundations Training Program",
    "description": "Comprehensive four-week training program",
    "thumbnail": "https://example.com/course-thumbnail.jpg",
    "modules": [
        {
            "title": "Introduction to the Program",
            "day": 1,
            "week": 1,
            "videoUrl": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "materials": ["Introduction Slides", "Getting Started Guide"],
        },
        {
            "title": "Core Concepts",
            "day": 2,
            "week": 1,
            "videoUrl": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "materials": ["Core Concepts PDF", "Practice Exercises"],
        },
        {
            "title": "Advanced Techniques",
            "day": 3,
            "week": 1,
            "videoUrl": "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "materials": ["Advanced Techniques Manual", "Case Studies"],
        },
    ],
}


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        db.create_all()
        click.echo("Database tables created")

    @app.cli.command("seed-sample-data")
    def seed_sample_data():
        """Insert a demo course with modules and materials."""
        course = create_course(**SAMPLE_COURSE)
        click.echo(f"Created course {course.id} with {course.total_modules} modules")

    @app.cli.command("create-admin")
    @click.option("--name", prompt=True)
    @click.option("--email", prompt=True)
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin(name, email, password):
        """Create an administrator account, or promote an existing student."""
        student = find_student(email)
        if student is None:
            student = Student(name=name, email=normalize_email(email))
            student.set_password(password)
            db.session.add(student)
        student.role = "admin"
        db.session.commit()
        click.echo(f"Admin ready: {student.email}")
