# app/routers/auth.py
# Register (multipart, optional picture), password login and Google login.
# Every successful login answers {"authToken": "..."}.

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlmodel import Session

from app.db import get_session
from app.models import Gender
from app.schemas import GoogleLoginIn, LoginIn, TokenOut, UserRead
from app.services import users as user_service
from app.services.google_identity import IdentityVerifier, get_identity_verifier
from app.services.images import ImageHost, get_image_host

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(
    session: Session = Depends(get_session),
    image_host: ImageHost = Depends(get_image_host),
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: Optional[str] = Form(None, alias="confirmPassword"),
    gender: Optional[Gender] = Form(None),
    image: Optional[UploadFile] = File(None),
):
    user = user_service.register_user(
        session,
        name=name,
        email=email,
        password=password,
        confirm_password=confirm_password,
        gender=gender,
        image=image.file.read() if image else None,
        image_host=image_host,
    )
    return UserRead.model_validate(user)


@router.post("/login", response_model=TokenOut)
def login(body: LoginIn, session: Session = Depends(get_session)):
    token = user_service.login(session, email=body.email, password=body.password)
    return TokenOut(auth_token=token)


@router.post("/google", response_model=TokenOut)
def google_login(
    body: GoogleLoginIn,
    session: Session = Depends(get_session),
    verify: IdentityVerifier = Depends(get_identity_verifier),
):
    token = user_service.google_login(session, verify, body.credential)
    return TokenOut(auth_token=token)
