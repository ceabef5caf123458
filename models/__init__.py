from .user import User
from .class_model import ClassSection
from .enrollment import Enrollment
from .attendance import AttendanceRecord
from .notification import Notification
__all__ = ["User", "ClassSection", "Enrollment", "AttendanceRecord", "Notification"]
