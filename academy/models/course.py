from datetime import datetime

from academy.extensions import db


class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text)
    thumbnail = db.Column(db.String(255))
    syllabus = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    modules = db.relationship(
        "CourseModule",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CourseModule.day",
    )
    grants = db.relationship("AccessGrant", back_populates="course", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def total_modules(self):
        return len(self.modules)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "thumbnail": self.thumbnail,
            "syllabus": self.syllabus,
            "totalModules": self.total_modules,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class CourseModule(db.Model):
    __tablename__ = "course_modules"

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = db.Column(db.String(120), nullable=False)
    day = db.Column(db.Integer, nullable=False)
    week = db.Column(db.Integer, nullable=True)
    # opaque locator of the externally hosted video, never sent to clients
    video_url = db.Column(db.String(255), nullable=True)

    course = db.relationship("Course", back_populates="modules")
    materials = db.relationship(
        "ModuleMaterial",
        back_populates="module",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "courseId": self.course_id,
            "title": self.title,
            "day": self.day,
            "week": self.week,
        }


class ModuleMaterial(db.Model):
    __tablename__ = "module_materials"

    id = db.Column(db.Integer, primary_key=True)
    module_id = db.Column(db.Integer, db.ForeignKey("course_modules.id", ondelete="CASCADE"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    material = db.Column(db.String(255), nullable=False)

    module = db.relationship("CourseModule", back_populates="materials")

    def to_dict(self):
        return {
            "id": self.id,
            "moduleId": self.module_id,
            "courseId": self.course_id,
            "material": self.material,
        }
