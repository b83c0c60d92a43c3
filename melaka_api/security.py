# ------------------------------------------------------------
# security.py — 비밀번호 해시 / 세션 토큰(JWT) / 인증 의존성
# ------------------------------------------------------------

from __future__ import annotations

import hashlib
import hmac
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from dotenv import load_dotenv
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .db import get_db
from .models import User

load_dotenv()

# 토큰 서명 키. 운영에서는 반드시 긴 난수 값으로 교체
JWT_SECRET = os.getenv("JWT_SECRET", "visit-melaka-dev-secret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "1440"))

# PBKDF2 반복 횟수 (테스트에서는 환경변수로 낮춰서 사용)
PASSWORD_HASH_ITERATIONS = int(os.getenv("PASSWORD_HASH_ITERATIONS", "390000"))

_HASH_SCHEME = "pbkdf2_sha256"


# ------------------------------
# 비밀번호 해시
# ------------------------------
def hash_password(password: str, iterations: Optional[int] = None) -> str:
    """
    비밀번호를 "pbkdf2_sha256$반복수$salt(hex)$hash(hex)" 문자열로 변환.
    salt는 호출마다 새로 생성되므로 같은 비밀번호라도 결과가 다름.
    """
    iterations = iterations or PASSWORD_HASH_ITERATIONS
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{_HASH_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """저장된 해시 문자열과 입력 비밀번호 비교 (상수 시간 비교)"""
    try:
        scheme, iterations, salt_hex, digest_hex = stored.split("$")
        salt = bytes.fromhex(salt_hex)
        rounds = int(iterations)
    except ValueError:
        return False
    if scheme != _HASH_SCHEME:
        return False

    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(digest.hex(), digest_hex)


# ------------------------------
# 세션 토큰 (JWT, HS256)
# ------------------------------
def create_access_token(user_id: int, expires_minutes: Optional[int] = None) -> str:
    """sub=user_id 인 서명 토큰 발급"""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes or JWT_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> int:
    """
    토큰 검증 후 user_id 반환.
    서명 불일치/만료/형식 오류는 모두 401.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return int(payload["sub"])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Session expired")
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid session token")


# auto_error=False: 헤더가 없을 때 403 대신 아래에서 직접 401로 응답
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Authorization: Bearer <token> 헤더에서 사용자를 복원하는 의존성.
    - 요청 바디의 user_id를 믿지 않고, 토큰의 sub로 서버에서 다시 조회
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Login required")

    user_id = decode_access_token(credentials.credentials)
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid session token")
    return user
