"""
Database models package
"""
from app.models.user import User
from app.models.category import Category
from app.models.quiz import Quiz
from app.models.question import Question, AnswerOption, QuestionType
from app.models.quiz_attempt import UserQuizAttempt, UserAnswer, AttemptStatus
from app.models.user_progress import UserProgress
from app.models.certificate import Certificate
from app.models.fun_fact import FunFact

__all__ = [
    "User",
    "Category",
    "Quiz",
    "Question",
    "AnswerOption",
    "QuestionType",
    "UserQuizAttempt",
    "UserAnswer",
    "AttemptStatus",
    "UserProgress",
    "Certificate",
    "FunFact",
]
