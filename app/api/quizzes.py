"""
Quiz catalogue and quiz-taking API endpoints
"""

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from app.database import get_db
from app.dependencies import get_current_user
from app.models import User
from app.schemas.category import CategoryResponse
from app.schemas.quiz import (
    AttemptResponse,
    QuizDetailResponse,
    QuizResponse,
    QuizSubmission,
    StartAttemptResponse,
    SubmitAttemptResponse,
)
from app.services.attempt_service import attempt_service
from app.services.catalog_service import catalog_service
from app.utils.cache import cache_service


router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])
categories_router = APIRouter(prefix="/api/categories", tags=["categories"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[QuizResponse])
async def list_quizzes(
    category_id: Optional[UUID] = None,
    difficulty: Optional[str] = Query(None, pattern="^(easy|medium|hard)$"),
    db: Session = Depends(get_db),
):
    """
    List published quizzes, newest first

    - Optional filters: category_id, difficulty
    - Served from cache when available
    """
    cache_key = cache_service.quiz_list_key(
        str(category_id) if category_id else None, difficulty
    )

    def load():
        quizzes = catalog_service.list_published_quizzes(db, category_id, difficulty)
        return jsonable_encoder([QuizResponse.model_validate(q) for q in quizzes])

    return cache_service.get_or_set(cache_key, load)


@router.get("/{quiz_id}", response_model=QuizDetailResponse)
async def get_quiz(quiz_id: UUID, db: Session = Depends(get_db)):
    """Get a published quiz with its question count"""

    def load():
        quiz = catalog_service.get_published_quiz(db, quiz_id)
        detail = QuizDetailResponse.model_validate(quiz)
        detail.question_count = catalog_service.count_questions(db, quiz_id)
        return jsonable_encoder(detail)

    return cache_service.get_or_set(cache_service.quiz_detail_key(str(quiz_id)), load)


@router.post("/{quiz_id}/start", response_model=StartAttemptResponse)
async def start_quiz(
    quiz_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Start a quiz attempt

    - Quiz must be published
    - Serves the first questions_per_attempt questions by display order
    - Options are returned without their correctness flag
    """
    logger.info(f"Starting quiz {quiz_id} for user {current_user.id}")

    return attempt_service.start_attempt(db, current_user.id, quiz_id)


@router.post("/{quiz_id}/submit", response_model=SubmitAttemptResponse)
async def submit_quiz(
    quiz_id: UUID,
    submission: QuizSubmission,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Submit answers for the active attempt and grade them

    Grading strategy:
    - multiple_choice / yes_no: exactly the one correct option
    - checkbox: exactly the set of correct options
    - No partial credit

    Returns:
    - Score percentage against the submitted answers
    - Pass/fail and the certificate URL when passed
    """
    logger.info(
        f"Grading quiz {quiz_id} for user {current_user.id} "
        f"({len(submission.answers)} answers)"
    )

    result = attempt_service.submit_attempt(
        db,
        current_user.id,
        quiz_id,
        [answer.model_dump() for answer in submission.answers],
    )

    return SubmitAttemptResponse(
        attempt=AttemptResponse.model_validate(result["attempt"]),
        score=result["score"],
        correct_answers=result["correct_answers"],
        total_questions=result["total_questions"],
        passed=result["passed"],
        certificate_url=result["certificate_url"],
    )


@categories_router.get("/", response_model=List[CategoryResponse])
async def list_categories(db: Session = Depends(get_db)):
    """List active categories"""
    categories = catalog_service.list_active_categories(db)
    return [CategoryResponse.model_validate(c) for c in categories]
