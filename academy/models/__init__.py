from .user import Student, OneTimeCode, UserDevice, MobileSession
from .course import Course, CourseModule, ModuleMaterial
from .enrollment import EnrollmentRequest, AccessGrant
from .progress import VideoProgress
