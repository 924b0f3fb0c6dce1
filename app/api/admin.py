"""
Administration API endpoints (admin / super_admin only)
"""
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from app.database import get_db
from app.dependencies import get_current_admin
from app.exceptions import NotFoundError
from app.models import User
from app.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from app.schemas.fun_fact import FunFactCreate, FunFactResponse, FunFactUpdate
from app.schemas.question import QuestionCreate, QuestionResponse, QuestionUpdate
from app.schemas.quiz import AttemptResponse, QuizCreate, QuizResponse, QuizUpdate
from app.schemas.user import AdminCertificateResponse, CertificateCreate, CertificateUpdate, UserResponse
from app.services.attempt_service import attempt_service
from app.services.catalog_service import catalog_service
from app.services.media_service import media_service
from app.services.progress_service import progress_service

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(get_current_admin)],
)
logger = logging.getLogger(__name__)


# Categories

@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(db: Session = Depends(get_db)):
    return [CategoryResponse.model_validate(c) for c in catalog_service.list_categories(db)]


@router.get("/categories/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: UUID, db: Session = Depends(get_db)):
    return CategoryResponse.model_validate(catalog_service.get_category(db, category_id))


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def create_category(request: CategoryCreate, db: Session = Depends(get_db)):
    category = catalog_service.create_category(db, request.model_dump())
    return CategoryResponse.model_validate(category)


@router.put("/categories/{category_id}", response_model=CategoryResponse)
async def update_category(category_id: UUID, request: CategoryUpdate, db: Session = Depends(get_db)):
    category = catalog_service.update_category(db, category_id, request.model_dump(exclude_unset=True))
    return CategoryResponse.model_validate(category)


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(category_id: UUID, db: Session = Depends(get_db)):
    """Delete a category that no quiz references"""
    catalog_service.delete_category(db, category_id)


# Quizzes

@router.get("/quizzes", response_model=List[QuizResponse])
async def list_quizzes(db: Session = Depends(get_db)):
    """All quizzes, published or not"""
    return [QuizResponse.model_validate(q) for q in catalog_service.list_quizzes(db)]


@router.get("/quizzes/{quiz_id}", response_model=QuizResponse)
async def get_quiz(quiz_id: UUID, db: Session = Depends(get_db)):
    return QuizResponse.model_validate(catalog_service.get_quiz(db, quiz_id))


@router.post("/quizzes", response_model=QuizResponse, status_code=201)
async def create_quiz(request: QuizCreate, db: Session = Depends(get_db)):
    quiz = catalog_service.create_quiz(db, request.model_dump())
    return QuizResponse.model_validate(quiz)


@router.put("/quizzes/{quiz_id}", response_model=QuizResponse)
async def update_quiz(quiz_id: UUID, request: QuizUpdate, db: Session = Depends(get_db)):
    quiz = catalog_service.update_quiz(db, quiz_id, request.model_dump(exclude_unset=True))
    return QuizResponse.model_validate(quiz)


@router.delete("/quizzes/{quiz_id}", status_code=204)
async def delete_quiz(quiz_id: UUID, db: Session = Depends(get_db)):
    """Delete a quiz and its questions; refused once the quiz has attempts"""
    catalog_service.delete_quiz(db, quiz_id)


@router.post("/quizzes/{quiz_id}/thumbnail", response_model=QuizResponse)
async def upload_quiz_thumbnail(
    quiz_id: UUID,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    catalog_service.get_quiz(db, quiz_id)
    url = await media_service.save_image(file, "quizzes")
    return QuizResponse.model_validate(catalog_service.set_quiz_thumbnail(db, quiz_id, url))


# Questions

@router.get("/quizzes/{quiz_id}/questions", response_model=List[QuestionResponse])
async def list_questions(quiz_id: UUID, db: Session = Depends(get_db)):
    return [QuestionResponse.model_validate(q) for q in catalog_service.list_questions(db, quiz_id)]


@router.get("/questions/{question_id}", response_model=QuestionResponse)
async def get_question(question_id: UUID, db: Session = Depends(get_db)):
    return QuestionResponse.model_validate(catalog_service.get_question(db, question_id))


@router.post("/questions", response_model=QuestionResponse, status_code=201)
async def create_question(request: QuestionCreate, db: Session = Depends(get_db)):
    """
    Create a question with its options

    - At least 2 options
    - multiple_choice / yes_no: exactly one correct option
    """
    question = catalog_service.create_question(db, request.model_dump())
    return QuestionResponse.model_validate(question)


@router.put("/questions/{question_id}", response_model=QuestionResponse)
async def update_question(question_id: UUID, request: QuestionUpdate, db: Session = Depends(get_db)):
    question = catalog_service.update_question(
        db, question_id, request.model_dump(exclude_unset=True)
    )
    return QuestionResponse.model_validate(question)


@router.delete("/questions/{question_id}", status_code=204)
async def delete_question(question_id: UUID, db: Session = Depends(get_db)):
    catalog_service.delete_question(db, question_id)


@router.post("/questions/{question_id}/image", response_model=QuestionResponse)
async def upload_question_image(
    question_id: UUID,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    catalog_service.get_question(db, question_id)
    url = await media_service.save_image(file, "questions")
    return QuestionResponse.model_validate(catalog_service.set_question_image(db, question_id, url))


# Fun facts

@router.get("/funfacts", response_model=List[FunFactResponse])
async def list_fun_facts(question_id: Optional[UUID] = None, db: Session = Depends(get_db)):
    return [FunFactResponse.model_validate(f) for f in catalog_service.list_fun_facts(db, question_id)]


@router.get("/funfacts/{fun_fact_id}", response_model=FunFactResponse)
async def get_fun_fact(fun_fact_id: UUID, db: Session = Depends(get_db)):
    return FunFactResponse.model_validate(catalog_service.get_fun_fact(db, fun_fact_id))


@router.post("/funfacts", response_model=FunFactResponse, status_code=201)
async def create_fun_fact(request: FunFactCreate, db: Session = Depends(get_db)):
    fun_fact = catalog_service.create_fun_fact(db, request.model_dump())
    return FunFactResponse.model_validate(fun_fact)


@router.put("/funfacts/{fun_fact_id}", response_model=FunFactResponse)
async def update_fun_fact(fun_fact_id: UUID, request: FunFactUpdate, db: Session = Depends(get_db)):
    fun_fact = catalog_service.update_fun_fact(db, fun_fact_id, request.model_dump(exclude_unset=True))
    return FunFactResponse.model_validate(fun_fact)


@router.delete("/funfacts/{fun_fact_id}", status_code=204)
async def delete_fun_fact(fun_fact_id: UUID, db: Session = Depends(get_db)):
    catalog_service.delete_fun_fact(db, fun_fact_id)


@router.post("/funfacts/{fun_fact_id}/image", response_model=FunFactResponse)
async def upload_fun_fact_image(
    fun_fact_id: UUID,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    catalog_service.get_fun_fact(db, fun_fact_id)
    url = await media_service.save_image(file, "funfacts")
    return FunFactResponse.model_validate(catalog_service.set_fun_fact_image(db, fun_fact_id, url))


# Certificates

@router.get("/certificates", response_model=List[AdminCertificateResponse])
async def list_certificates(
    user_id: Optional[UUID] = None,
    quiz_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
):
    certificates = progress_service.list_certificates(db, user_id=user_id, quiz_id=quiz_id)
    return [AdminCertificateResponse.model_validate(c) for c in certificates]


@router.get("/certificates/{certificate_id}", response_model=AdminCertificateResponse)
async def get_certificate(certificate_id: UUID, db: Session = Depends(get_db)):
    return AdminCertificateResponse.model_validate(progress_service.get_certificate_by_id(db, certificate_id))


@router.post("/certificates", response_model=AdminCertificateResponse, status_code=201)
async def issue_certificate(request: CertificateCreate, db: Session = Depends(get_db)):
    """
    Issue a certificate by hand

    - The user needs a completed attempt at or above the passing score
    - One certificate per user and quiz
    """
    certificate = progress_service.issue_certificate(
        db,
        request.user_id,
        request.quiz_id,
        score_achieved=request.score_achieved,
        certificate_url=request.certificate_url,
    )
    return AdminCertificateResponse.model_validate(certificate)


@router.put("/certificates/{certificate_id}", response_model=AdminCertificateResponse)
async def update_certificate(certificate_id: UUID, request: CertificateUpdate, db: Session = Depends(get_db)):
    certificate = progress_service.update_certificate(db, certificate_id, request.model_dump(exclude_unset=True))
    return AdminCertificateResponse.model_validate(certificate)


@router.delete("/certificates/{certificate_id}", status_code=204)
async def revoke_certificate(certificate_id: UUID, db: Session = Depends(get_db)):
    progress_service.revoke_certificate(db, certificate_id)


# Attempts

@router.post("/attempts/{attempt_id}/abandon", response_model=AttemptResponse)
async def abandon_attempt(attempt_id: UUID, db: Session = Depends(get_db)):
    """Mark a stuck in-progress attempt as abandoned"""
    attempt = attempt_service.abandon_attempt(db, attempt_id)
    return AttemptResponse.model_validate(attempt)


# Users

@router.get("/users", response_model=List[UserResponse])
async def list_users(db: Session = Depends(get_db)):
    users = db.query(User).order_by(User.created_at.desc()).all()
    return [UserResponse.model_validate(u) for u in users]


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return UserResponse.model_validate(user)
