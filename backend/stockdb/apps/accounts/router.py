from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...database import get_read_db, get_write_db
from ...policy import capabilities
from ...security import Principal, get_current_principal, get_current_user
from . import models, schemas, services

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=schemas.Token)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_write_db),
):
    try:
        user = services.authenticate_user(db, username=payload.username, password=payload.password)
    except services.AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )

    token, expires_in = services.issue_access_token_for_user(user)
    return schemas.Token(
        access_token=token,
        expires_in=expires_in,
        user=schemas.UserRead.model_validate(user),
        capabilities=capabilities(user.effective_role),
    )


@router.get("/me", response_model=schemas.CurrentUser)
def read_current_user(current_user: models.User = Depends(get_current_user)):
    return schemas.CurrentUser(
        user=schemas.UserRead.model_validate(current_user),
        capabilities=capabilities(current_user.effective_role),
    )


@router.get("/users", response_model=List[schemas.UserRead])
def list_users(
    db: Session = Depends(get_read_db),
    principal: Principal = Depends(get_current_principal),
):
    return services.list_users(db, principal=principal)
