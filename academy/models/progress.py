from datetime import datetime

from academy.extensions import db


class VideoProgress(db.Model):
    __tablename__ = "video_progress"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    module_id = db.Column(db.Integer, db.ForeignKey("course_modules.id", ondelete="CASCADE"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    watched_duration = db.Column(db.Float, nullable=False, default=0.0)
    total_duration = db.Column(db.Float, nullable=False, default=0.0)
    watched_percentage = db.Column(db.Float, nullable=False, default=0.0)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    last_watched_position = db.Column(db.Float, nullable=False, default=0.0)
    last_watched = db.Column(db.DateTime, default=datetime.utcnow)

    student = db.relationship("Student", back_populates="progress")
    module = db.relationship("CourseModule")

    __table_args__ = (
        db.UniqueConstraint("user_id", "module_id", name="uq_video_progress_user_module"),
    )

    def to_dict(self):
        return {
            "moduleId": self.module_id,
            "courseId": self.course_id,
            "watchedDuration": self.watched_duration,
            "totalDuration": self.total_duration,
            "watchedPercentage": round(self.watched_percentage, 2),
            "completed": self.completed,
            "lastWatchedPosition": self.last_watched_position,
            "lastWatched": self.last_watched.isoformat() if self.last_watched else None,
        }
