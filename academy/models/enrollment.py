from datetime import datetime

from academy.extensions import db

PENDING = 0
APPROVED = 1
REJECTED = 2


class EnrollmentRequest(db.Model):
    """A student's request, backed by payment evidence, to join a course."""

    __tablename__ = "enrollment_requests"

    id = db.Column(db.Integer, primary_key=True)
    student_name = db.Column(db.String(100), nullable=False)
    student_email = db.Column(db.String(120), nullable=False, index=True)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    course_name = db.Column(db.String(120), nullable=False)
    transaction_id = db.Column(db.String(100), nullable=False)
    referral_id = db.Column(db.String(100), nullable=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.Integer, nullable=False, default=PENDING)  # 0 pending, 1 approved, 2 rejected
    rejection_reason = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    reviewed_at = db.Column(db.DateTime, nullable=True)

    course = db.relationship("Course")

    __table_args__ = (
        # one open (pending or approved) request per email and course
        db.Index(
            "uq_enrollment_open_request",
            "student_email",
            "course_id",
            unique=True,
            sqlite_where=db.text("status != 2"),
            postgresql_where=db.text("status != 2"),
        ),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.student_name,
            "email": self.student_email,
            "courseId": self.course_id,
            "courseName": self.course_name,
            "transactionId": self.transaction_id,
            "referralId": self.referral_id,
            "amount": float(self.amount) if self.amount is not None else None,
            "status": self.status,
            "rejectionReason": self.rejection_reason,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "reviewedAt": self.reviewed_at.isoformat() if self.reviewed_at else None,
        }


class AccessGrant(db.Model):
    """Durable record that a student may consume a course's content."""

    __tablename__ = "access_grants"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    granted_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    student = db.relationship("Student", back_populates="grants")
    course = db.relationship("Course", back_populates="grants")

    __table_args__ = (
        db.UniqueConstraint("student_id", "course_id", name="uq_access_grant_student_course"),
    )
