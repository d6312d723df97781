from .user import User
from .mission import Mission
from .teacher_video import TeacherVideo
from .daily_report import DailyReport

__all__ = [
    "User",
    "Mission",
    "TeacherVideo",
    "DailyReport",
]
