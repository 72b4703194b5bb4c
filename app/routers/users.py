# app/routers/users.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlmodel import Session

from app.db import get_session
from app.models import Gender
from app.schemas import DeleteMeIn, MessageOut, UserRead
from app.security import AuthenticatedContext, get_current_context
from app.services import users as user_service
from app.services.images import ImageHost, get_image_host

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserRead)
def read_me(
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
):
    return UserRead.model_validate(user_service.get_me(session, ctx))


@router.put("/me", response_model=UserRead)
def update_me(
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
    image_host: ImageHost = Depends(get_image_host),
    name: Optional[str] = Form(None),
    gender: Optional[Gender] = Form(None),
    current_password: Optional[str] = Form(None, alias="currentPassword"),
    new_password: Optional[str] = Form(None, alias="newPassword"),
    confirm_new_password: Optional[str] = Form(None, alias="confirmNewPassword"),
    image: Optional[UploadFile] = File(None),
):
    user = user_service.update_me(
        session,
        ctx,
        name=name,
        gender=gender,
        current_password=current_password,
        new_password=new_password,
        confirm_new_password=confirm_new_password,
        image=image.file.read() if image else None,
        image_host=image_host,
    )
    return UserRead.model_validate(user)


@router.delete("/me", response_model=MessageOut)
def delete_me(
    body: DeleteMeIn,
    session: Session = Depends(get_session),
    ctx: AuthenticatedContext = Depends(get_current_context),
    image_host: ImageHost = Depends(get_image_host),
):
    user_service.delete_me(session, ctx, password=body.password, image_host=image_host)
    return MessageOut(message="User deleted successfully.")
