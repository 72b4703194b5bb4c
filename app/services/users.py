# app/services/users.py
"""
Registration, sign-in and the caller's own profile.

Emails are stripped and lowercased before every lookup, so invites and
logins match regardless of how the address was typed.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from app.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from app.models import AccountInvite, AccountRole, AuthProvider, Gender, Membership, User
from app.period import utcnow
from app.security import (
    AuthenticatedContext,
    create_access_token,
    hash_password,
    verify_password,
)
from app.services.google_identity import IdentityVerifier
from app.services.images import ImageHost
from app.services.memberships import count_owners

logger = logging.getLogger("ledger.auth")


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _find_by_email(session: Session, email: str) -> Optional[User]:
    return session.exec(select(User).where(User.email == email)).first()


def register_user(
    session: Session,
    *,
    name: str,
    email: str,
    password: str,
    confirm_password: Optional[str],
    gender: Optional[Gender] = None,
    image: Optional[bytes] = None,
    image_host: Optional[ImageHost] = None,
) -> User:
    email = _normalize_email(email)
    name = (name or "").strip()
    if not email or not password or not name:
        raise ValidationError("Provide email, password and name.")
    if password != confirm_password:
        raise ValidationError("Passwords do not match.")
    if _find_by_email(session, email):
        raise ValidationError("Invalid credentials.")

    user = User(
        name=name,
        email=email,
        hashed_password=hash_password(password),
        provider=AuthProvider.LOCAL,
        gender=gender,
    )
    if image and image_host is not None:
        uploaded = image_host.upload(image)
        user.image, user.image_public_id = uploaded.url, uploaded.public_id

    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info("User registered id=%s", user.id)
    return user


def login(session: Session, *, email: str, password: str) -> str:
    """Check credentials and return a bearer token."""
    email = _normalize_email(email)
    if not email or not password:
        raise ValidationError("Provide email and password.")

    user = _find_by_email(session, email)
    if not user:
        raise AuthenticationError("Invalid credentials.")
    if user.provider != AuthProvider.LOCAL:
        raise ValidationError("Use Google login for this account.")
    if not user.hashed_password or not verify_password(password, user.hashed_password):
        raise AuthenticationError("Invalid credentials.")

    return create_access_token(user.id, user.email)


def google_login(session: Session, verify: IdentityVerifier, credential: str) -> str:
    """Sign in with a Google ID token; the first sign-in creates the user."""
    identity = verify(credential)
    user = _find_by_email(session, identity.email)
    if user is None:
        user = User(
            name=identity.name,
            email=identity.email,
            provider=AuthProvider.GOOGLE,
            image=identity.picture,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        logger.info("User registered via Google id=%s", user.id)
    elif user.provider != AuthProvider.GOOGLE:
        raise ValidationError("Use email and password to sign in.")

    return create_access_token(user.id, user.email)


def get_me(session: Session, ctx: AuthenticatedContext) -> User:
    user = session.get(User, ctx.user_id)
    if not user:
        raise NotFoundError("User not found.")
    return user


def update_me(
    session: Session,
    ctx: AuthenticatedContext,
    *,
    name: Optional[str] = None,
    gender: Optional[Gender] = None,
    current_password: Optional[str] = None,
    new_password: Optional[str] = None,
    confirm_new_password: Optional[str] = None,
    image: Optional[bytes] = None,
    image_host: Optional[ImageHost] = None,
) -> User:
    user = get_me(session, ctx)
    changed = False

    if name:
        user.name = name.strip()
        changed = True
    if gender:
        user.gender = gender
        changed = True

    if new_password or confirm_new_password:
        if not current_password or not new_password or not confirm_new_password:
            raise ValidationError(
                "Current password, new password and confirmation are required."
            )
        if new_password != confirm_new_password:
            raise ValidationError("New passwords do not match.")
        if not user.hashed_password:
            raise ValidationError("Password change not allowed for OAuth users.")
        if not verify_password(current_password, user.hashed_password):
            raise AuthenticationError("Current password is incorrect.")
        user.hashed_password = hash_password(new_password)
        changed = True

    if image and image_host is not None:
        uploaded = image_host.upload(image)
        if user.image_public_id:
            image_host.destroy(user.image_public_id)
        user.image, user.image_public_id = uploaded.url, uploaded.public_id
        changed = True

    if not changed:
        raise ValidationError("No data provided to update.")

    user.updated_at = utcnow()
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def _sole_owned_account_ids(session: Session, user_id: int) -> list[int]:
    owned = session.exec(
        select(Membership.account_id).where(
            Membership.user_id == user_id, Membership.role == AccountRole.OWNER
        )
    ).all()
    return [account_id for account_id in owned if count_owners(session, account_id) <= 1]


def delete_me(
    session: Session,
    ctx: AuthenticatedContext,
    *,
    password: str,
    image_host: Optional[ImageHost] = None,
) -> None:
    """
    Delete the caller after re-checking the password. Refused while the
    caller is the only OWNER of some account.
    """
    if not password:
        raise ValidationError("Password is required to delete account.")
    user = get_me(session, ctx)
    if not user.hashed_password:
        raise ValidationError("OAuth users must confirm identity via Google.")
    if not verify_password(password, user.hashed_password):
        raise AuthenticationError("Incorrect password.")
    if _sole_owned_account_ids(session, user.id):
        raise ConflictError(
            "Transfer ownership or delete the accounts you solely own first."
        )

    if user.image_public_id and image_host is not None:
        image_host.destroy(user.image_public_id)

    session.exec(delete(Membership).where(Membership.user_id == user.id))
    session.exec(delete(AccountInvite).where(AccountInvite.invited_by_id == user.id))
    session.delete(user)
    session.commit()
    logger.info("User deleted id=%s", ctx.user_id)
