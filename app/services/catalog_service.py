"""
Category, quiz, question and fun fact management
"""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from app.exceptions import InvalidStateError, NotFoundError, StorageFailureError
from app.models import (
    AnswerOption,
    Category,
    FunFact,
    Question,
    QuestionType,
    Quiz,
    UserAnswer,
    UserQuizAttempt,
)
from app.utils.cache import cache_service

logger = logging.getLogger(__name__)


class CatalogService:
    """Service for the quiz catalogue; every write invalidates the quiz cache"""

    # ---------------------------------------------------------------------
    # Public reads
    # ---------------------------------------------------------------------

    def list_published_quizzes(
        self,
        db: Session,
        category_id: Optional[UUID] = None,
        difficulty: Optional[str] = None,
    ) -> List[Quiz]:
        query = db.query(Quiz).options(joinedload(Quiz.category)).filter(Quiz.is_published.is_(True))

        if category_id:
            query = query.filter(Quiz.category_id == category_id)
        if difficulty:
            query = query.filter(Quiz.difficulty_level == difficulty)

        return query.order_by(Quiz.created_at.desc()).all()

    def get_published_quiz(self, db: Session, quiz_id: UUID) -> Quiz:
        quiz = db.query(Quiz).options(
            joinedload(Quiz.category)
        ).filter(Quiz.id == quiz_id).first()

        if not quiz or not quiz.is_published:
            raise NotFoundError("Quiz not found")
        return quiz

    def count_questions(self, db: Session, quiz_id: UUID) -> int:
        return db.query(Question).filter(Question.quiz_id == quiz_id).count()

    def list_active_categories(self, db: Session) -> List[Category]:
        return db.query(Category).filter(
            Category.is_active.is_(True)
        ).order_by(Category.display_order.asc(), Category.name.asc()).all()

    # ---------------------------------------------------------------------
    # Categories
    # ---------------------------------------------------------------------

    def list_categories(self, db: Session) -> List[Category]:
        return db.query(Category).order_by(Category.display_order.asc(), Category.name.asc()).all()

    def get_category(self, db: Session, category_id: UUID) -> Category:
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise NotFoundError("Category not found")
        return category

    def create_category(self, db: Session, data: Dict[str, Any]) -> Category:
        self._ensure_unique_category_name(db, data["name"])

        category = Category(**data)
        db.add(category)
        self._commit(db, "create category")
        db.refresh(category)

        logger.info(f"Category created: {category.id}")
        return category

    def update_category(self, db: Session, category_id: UUID, data: Dict[str, Any]) -> Category:
        category = self.get_category(db, category_id)

        if "name" in data and data["name"] != category.name:
            self._ensure_unique_category_name(db, data["name"])

        for field, value in data.items():
            setattr(category, field, value)

        self._commit(db, "update category")
        db.refresh(category)
        return category

    def delete_category(self, db: Session, category_id: UUID) -> None:
        category = self.get_category(db, category_id)

        quiz_count = db.query(Quiz).filter(Quiz.category_id == category_id).count()
        if quiz_count:
            raise InvalidStateError(f"Category still has {quiz_count} quiz(zes)")

        db.delete(category)
        self._commit(db, "delete category")
        logger.info(f"Category deleted: {category_id}")

    def _ensure_unique_category_name(self, db: Session, name: str) -> None:
        if db.query(Category).filter(Category.name == name).first():
            raise InvalidStateError("Category with this name already exists")

    # ---------------------------------------------------------------------
    # Quizzes
    # ---------------------------------------------------------------------

    def list_quizzes(self, db: Session) -> List[Quiz]:
        return db.query(Quiz).options(joinedload(Quiz.category)).order_by(Quiz.created_at.desc()).all()

    def get_quiz(self, db: Session, quiz_id: UUID) -> Quiz:
        quiz = db.query(Quiz).options(joinedload(Quiz.category)).filter(Quiz.id == quiz_id).first()
        if not quiz:
            raise NotFoundError("Quiz not found")
        return quiz

    def create_quiz(self, db: Session, data: Dict[str, Any]) -> Quiz:
        self.get_category(db, data["category_id"])

        quiz = Quiz(**data)
        db.add(quiz)
        self._commit(db, "create quiz")
        db.refresh(quiz)

        logger.info(f"Quiz created: {quiz.id}")
        return quiz

    def update_quiz(self, db: Session, quiz_id: UUID, data: Dict[str, Any]) -> Quiz:
        quiz = self.get_quiz(db, quiz_id)

        if "category_id" in data:
            self.get_category(db, data["category_id"])

        for field, value in data.items():
            setattr(quiz, field, value)

        self._commit(db, "update quiz")
        db.refresh(quiz)
        return quiz

    def set_quiz_thumbnail(self, db: Session, quiz_id: UUID, url: str) -> Quiz:
        return self.update_quiz(db, quiz_id, {"thumbnail_url": url})

    def delete_quiz(self, db: Session, quiz_id: UUID) -> None:
        quiz = self.get_quiz(db, quiz_id)

        attempts = db.query(UserQuizAttempt).filter(UserQuizAttempt.quiz_id == quiz_id).count()
        if attempts:
            raise InvalidStateError("Quiz has attempts; unpublish it instead of deleting")

        db.delete(quiz)
        self._commit(db, "delete quiz")
        logger.info(f"Quiz deleted: {quiz_id}")

    # ---------------------------------------------------------------------
    # Questions
    # ---------------------------------------------------------------------

    def list_questions(self, db: Session, quiz_id: UUID) -> List[Question]:
        self.get_quiz(db, quiz_id)
        return db.query(Question).options(
            selectinload(Question.options)
        ).filter(
            Question.quiz_id == quiz_id
        ).order_by(Question.display_order.asc()).all()

    def get_question(self, db: Session, question_id: UUID) -> Question:
        question = db.query(Question).options(
            selectinload(Question.options)
        ).filter(Question.id == question_id).first()
        if not question:
            raise NotFoundError("Question not found")
        return question

    def create_question(self, db: Session, data: Dict[str, Any]) -> Question:
        self.get_quiz(db, data["quiz_id"])

        options = data.pop("options")
        self._validate_options(data["question_type"], options)

        question = Question(**self._question_columns(data))
        question.options = [AnswerOption(**option) for option in options]

        db.add(question)
        self._commit(db, "create question")
        db.refresh(question)

        logger.info(f"Question created: {question.id} (quiz={question.quiz_id})")
        return question

    def update_question(self, db: Session, question_id: UUID, data: Dict[str, Any]) -> Question:
        question = self.get_question(db, question_id)

        options = data.pop("options", None)
        question_type = data.get("question_type", question.question_type)

        if options is not None:
            self._validate_options(question_type, options)
            if self._has_answers(db, question_id):
                raise InvalidStateError("Options of an answered question cannot be replaced")
        elif "question_type" in data:
            self._validate_options(
                question_type,
                [{"is_correct": option.is_correct} for option in question.options]
            )

        for field, value in self._question_columns(data).items():
            setattr(question, field, value)

        if options is not None:
            # Options are replaced wholesale; delete-orphan removes the old rows
            question.options = [AnswerOption(**option) for option in options]

        self._commit(db, "update question")
        db.refresh(question)
        return question

    def set_question_image(self, db: Session, question_id: UUID, url: str) -> Question:
        return self.update_question(db, question_id, {"question_image_url": url})

    def delete_question(self, db: Session, question_id: UUID) -> None:
        question = self.get_question(db, question_id)

        if self._has_answers(db, question_id):
            raise InvalidStateError("Question has recorded answers and cannot be deleted")

        db.delete(question)
        self._commit(db, "delete question")
        logger.info(f"Question deleted: {question_id}")

    def _question_columns(self, data: Dict[str, Any]) -> Dict[str, Any]:
        # "metadata" is reserved on declarative models; the column attribute is "meta"
        columns = dict(data)
        if "metadata" in columns:
            columns["meta"] = columns.pop("metadata")
        return columns

    def _has_answers(self, db: Session, question_id: UUID) -> bool:
        return db.query(UserAnswer).filter(UserAnswer.question_id == question_id).first() is not None

    def _validate_options(self, question_type: str, options: List[Dict[str, Any]]) -> None:
        """Single-choice questions need exactly one correct option"""
        if len(options) < 2:
            raise InvalidStateError("At least 2 options are required")

        valid_types = [t.value for t in QuestionType]
        if question_type not in valid_types:
            raise InvalidStateError(f"Question type must be one of: {', '.join(valid_types)}")

        correct = sum(1 for option in options if option.get("is_correct"))
        if question_type != QuestionType.CHECKBOX.value and correct != 1:
            raise InvalidStateError(f"A {question_type} question needs exactly one correct option")

    # ---------------------------------------------------------------------
    # Fun facts
    # ---------------------------------------------------------------------

    def list_fun_facts(self, db: Session, question_id: Optional[UUID] = None) -> List[FunFact]:
        query = db.query(FunFact).options(joinedload(FunFact.question))
        if question_id:
            query = query.filter(FunFact.question_id == question_id)
        return query.order_by(FunFact.created_at.desc()).all()

    def get_fun_fact(self, db: Session, fun_fact_id: UUID) -> FunFact:
        fun_fact = db.query(FunFact).options(
            joinedload(FunFact.question)
        ).filter(FunFact.id == fun_fact_id).first()
        if not fun_fact:
            raise NotFoundError("Fun fact not found")
        return fun_fact

    def create_fun_fact(self, db: Session, data: Dict[str, Any]) -> FunFact:
        self.get_question(db, data["question_id"])

        fun_fact = FunFact(**data)
        db.add(fun_fact)
        self._commit(db, "create fun fact")
        db.refresh(fun_fact)

        logger.info(f"Fun fact created: {fun_fact.id} (question={fun_fact.question_id})")
        return fun_fact

    def update_fun_fact(self, db: Session, fun_fact_id: UUID, data: Dict[str, Any]) -> FunFact:
        fun_fact = self.get_fun_fact(db, fun_fact_id)

        for field, value in data.items():
            setattr(fun_fact, field, value)

        self._commit(db, "update fun fact")
        db.refresh(fun_fact)
        return fun_fact

    def set_fun_fact_image(self, db: Session, fun_fact_id: UUID, url: str) -> FunFact:
        return self.update_fun_fact(db, fun_fact_id, {"image_url": url})

    def delete_fun_fact(self, db: Session, fun_fact_id: UUID) -> None:
        fun_fact = self.get_fun_fact(db, fun_fact_id)

        db.delete(fun_fact)
        self._commit(db, "delete fun fact")
        logger.info(f"Fun fact deleted: {fun_fact_id}")

    # ---------------------------------------------------------------------

    def _commit(self, db: Session, action: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to {action}: {str(e)}")
            raise StorageFailureError() from e

        cache_service.clear_quiz_cache()


# Global instance
catalog_service = CatalogService()
