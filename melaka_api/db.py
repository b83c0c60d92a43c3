# -------------------------------------------------------
# db.py — SQLAlchemy 엔진/세션 및 FastAPI 의존성 정의
# -------------------------------------------------------

import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from dotenv import load_dotenv

# .env 파일의 환경변수를 현재 프로세스 환경에 주입
# - DB_USER, DB_PASSWORD, DB_HOST, DB_PORT, DB_NAME 또는 DATABASE_URL
load_dotenv()

# -----------------------------
# 환경변수 로딩 (기본값 포함)
# -----------------------------
# NOTE: 기본값은 로컬 개발용(XAMPP/MySQL 기본 계정)이며,
#       운영환경에서는 반드시 실제 비밀값으로 대체해야 합니다.
DB_USER = os.getenv("DB_USER", "root")
DB_PASSWORD = os.getenv("DB_PASSWORD", "root")
DB_HOST = os.getenv("DB_HOST", "127.0.0.1")
DB_PORT = os.getenv("DB_PORT", "3306")
DB_NAME = os.getenv("DB_NAME", "utem_hackathon")

# 커넥션 풀 상한. 초과 요청은 실패하지 않고 빈 커넥션을 기다림(최대 DB_POOL_TIMEOUT초)
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))

# ----------------------------------------------
# SQLAlchemy Database URL
# ----------------------------------------------
# - 순수 파이썬 드라이버(PyMySQL) 사용
# - utf8mb4: 이모지 포함 전체 유니코드 지원
# - DATABASE_URL이 있으면 그대로 사용 (예: 로컬 실행용 sqlite:///./melaka.db)
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}?charset=utf8mb4",
)


def _engine_kwargs(url: str) -> dict:
    """
    드라이버별 create_engine 옵션.

    - SQLite: FastAPI 스레드풀에서 같은 커넥션을 쓸 수 있도록 check_same_thread 해제
      (SQLite 풀은 pool_size/max_overflow 옵션을 받지 않음)
    - MySQL:
      - pool_size + max_overflow=0 : 동시 커넥션 수 고정
      - pool_timeout               : 빈 커넥션 대기 시간(초)
      - pool_pre_ping=True         : 죽은 커넥션 감지 후 재연결
      - pool_recycle=3600          : 1시간마다 커넥션 재생성 (wait_timeout 대응)
    """
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": DB_POOL_SIZE,
        "max_overflow": 0,
        "pool_timeout": DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


# ----------------------------------------------
# SQLAlchemy Engine 생성
# ----------------------------------------------
engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))

# ----------------------------------------------
# 세션팩토리 생성
# ----------------------------------------------
# - autocommit=False: 명시적 commit() 전까지 하나의 트랜잭션
#   → 삭제(평점→장소)나 평점 업서트처럼 여러 문장을 실행해도 commit은 한 번
# - autoflush=False: 쿼리 시점의 자동 flush 방지
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ----------------------------------------------
# Declarative Base
# ----------------------------------------------
Base = declarative_base()


def get_db():
    """
    FastAPI 의존성 주입용 DB 세션 제공자(Generator)

    동작:
    1) 요청이 들어오면 SessionLocal()로 세션 생성
    2) 핸들러에 주입(yield)
    3) 응답 후 finally 블록에서 세션 종료(close)
       - commit되지 않은 변경분은 close() 시 롤백됨
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """ORM 메타데이터 기준으로 존재하지 않는 테이블만 생성"""
    # models 모듈이 import되어 있어야 Base.metadata에 테이블이 등록됨
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


# -------------------------------------------------------
# [추가 설명 / 실전 팁]
# -------------------------------------------------------
# 1) 연결 계정/권한:
#    - 앱 전용 계정을 만들고 최소 권한만 부여하세요.
#      예) GRANT SELECT, INSERT, UPDATE, DELETE ON utem_hackathon.* TO 'melaka'@'%';
#
# 2) 데이터베이스 생성:
#    - create_all()은 테이블만 만들고 DB 자체는 만들지 않습니다.
#      예) CREATE DATABASE IF NOT EXISTS utem_hackathon CHARACTER SET utf8mb4;
#
# 3) 로컬 실행:
#    - MySQL 없이 돌려보려면 .env에 DATABASE_URL=sqlite:///./melaka.db 지정
