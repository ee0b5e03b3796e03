from datetime import datetime

from werkzeug.security import check_password_hash, generate_password_hash

from academy.extensions import db


class Student(db.Model):
    __tablename__ = "students"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default="student")  # student | admin
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login_mobile = db.Column(db.DateTime, nullable=True)

    grants = db.relationship("AccessGrant", back_populates="student", cascade="all, delete-orphan", passive_deletes=True)
    devices = db.relationship("UserDevice", back_populates="student", cascade="all, delete-orphan", passive_deletes=True)
    sessions = db.relationship("MobileSession", back_populates="student", cascade="all, delete-orphan", passive_deletes=True)
    progress = db.relationship("VideoProgress", back_populates="student", cascade="all, delete-orphan", passive_deletes=True)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not password or not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
        }

    def __repr__(self):
        return f"<Student {self.email}>"


class OneTimeCode(db.Model):
    """Short-lived emailed verification code.

    Kept in the database with an explicit ``expires_at`` so that a restart or a
    second app instance sees the same pending codes.
    """

    __tablename__ = "one_time_codes"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), nullable=False)
    purpose = db.Column(db.String(30), nullable=False)  # registration | password_reset
    code_hash = db.Column(db.String(256), nullable=False)
    payload = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("email", "purpose", name="uq_one_time_code_email_purpose"),
    )

    def is_expired(self, now=None):
        return (now or datetime.utcnow()) > self.expires_at

    def __repr__(self):
        return f"<OneTimeCode {self.purpose} {self.email}>"


class UserDevice(db.Model):
    __tablename__ = "user_devices"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    device_id = db.Column(db.String(128), nullable=False)
    device_type = db.Column(db.String(30), nullable=False)
    device_name = db.Column(db.String(255))
    push_token = db.Column(db.String(255))
    app_version = db.Column(db.String(30))
    os_version = db.Column(db.String(30))
    ip_address = db.Column(db.String(100))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_active = db.Column(db.DateTime, default=datetime.utcnow)
    last_synced_at = db.Column(db.DateTime, nullable=True)

    student = db.relationship("Student", back_populates="devices")

    __table_args__ = (
        db.UniqueConstraint("user_id", "device_id", name="uq_user_device"),
    )


class MobileSession(db.Model):
    """Server-side record of a mobile session/refresh token pair.

    Only the JWT ids are stored; a session is usable while ``is_active`` and
    unexpired, and refreshing rewrites ``session_jti``/``expires_at`` in place.
    """

    __tablename__ = "mobile_sessions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    device_id = db.Column(db.String(128), nullable=False)
    session_jti = db.Column(db.String(64), unique=True, nullable=False)
    refresh_jti = db.Column(db.String(64), unique=True, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    refresh_expires_at = db.Column(db.DateTime, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    student = db.relationship("Student", back_populates="sessions")
