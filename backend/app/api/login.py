"""Authentication endpoints: login, current user and email lookup."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.core.security import create_access_token, get_current_user
from backend.app.db.session import get_db
from backend.app.models.user import User
from backend.app.schemas.login import LoginRequest, TokenResponse
from backend.app.schemas.user import CheckEmailRequest, CheckEmailResponse, UserRead
from backend.app.services.users import authenticate, email_exists

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, credentials.email, credentials.password)
    token = create_access_token(user_id=user.id)
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserRead)
def read_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/check-email", response_model=CheckEmailResponse)
def check_email(payload: CheckEmailRequest, db: Session = Depends(get_db)):
    return {"exists": email_exists(db, payload.email)}
