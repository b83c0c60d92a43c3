# -----------------------------------------------------------
# users.py — 회원가입 / 로그인 / 사용자가 리뷰한 장소 엔드포인트
# -----------------------------------------------------------

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_db
from ..schemas import (
    LoginIn,
    LoginOut,
    PathId,
    RegisterIn,
    RegisterOut,
    ReviewedPlaceListOut,
)
from ..security import create_access_token, hash_password, verify_password

# 이 모듈의 엔드포인트는 "/api/users"로 시작
router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/register", response_model=RegisterOut, status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    """
    회원가입.
    - 이메일이 이미 있으면 400 (동시 가입으로 UNIQUE 제약에 걸린 경우도 동일)
    - 비밀번호는 솔트 + PBKDF2 해시로만 저장
    """
    if crud.get_user_by_email(db, payload.email) is not None:
        raise HTTPException(status_code=400, detail="Email already registered")

    try:
        user = crud.create_user(
            db, payload.username, payload.email, hash_password(payload.password)
        )
    except IntegrityError:
        raise HTTPException(status_code=400, detail="Email already registered")

    return {"success": True, "user_id": user.user_id, "message": "User registered successfully"}


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    """
    로그인: 이메일로 사용자를 찾고 비밀번호 해시를 비교.
    성공 시 이후 변경 요청에 쓸 Bearer 토큰을 함께 반환합니다.
    """
    user = crud.get_user_by_email(db, payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning("login failed: email={}", payload.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return {
        "success": True,
        "user_id": user.user_id,
        "username": user.username,
        "email": user.email,
        "access_token": create_access_token(user.user_id),
        "token_type": "bearer",
    }


@router.get("/{user_id}/reviewed-places", response_model=ReviewedPlaceListOut)
def get_reviewed_places(user_id: PathId, db: Session = Depends(get_db)):
    """특정 사용자(user_id)가 평점을 남긴 장소 목록 (최근순)"""
    return {"reviewed_places": crud.reviewed_places(db, user_id)}
