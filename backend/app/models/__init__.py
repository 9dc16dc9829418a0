from app.models.user import User
from app.models.classroom import Classroom, ClassroomMember
from app.models.lesson import Lesson
from app.models.lesson_progress import LessonProgress
from app.models.topic import Topic, TopicItem
from app.models.quiz_attempt import QuizAttempt

__all__ = [
    "User",
    "Classroom",
    "ClassroomMember",
    "Lesson",
    "LessonProgress",
    "Topic",
    "TopicItem",
    "QuizAttempt",
]
