"""
Database models package
"""
from nokhba.models.student import Student
from nokhba.models.lesson import Lesson
from nokhba.models.quiz_attempt import QuizAttempt
from nokhba.models.progress import LessonProgress
from nokhba.models.recharge_code import RechargeCode
from nokhba.models.chat_message import ChatMessage

__all__ = ["Student", "Lesson", "QuizAttempt", "LessonProgress", "RechargeCode", "ChatMessage"]
