# ------------------------------------------------------------
# models.py — SQLAlchemy ORM 모델 정의 (users/places/ratings)
# ------------------------------------------------------------

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship
from .db import Base  # Declarative Base: 모든 ORM 모델의 베이스 클래스


# ------------------------------
# User: 사용자 테이블
# ------------------------------
class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False)

    # 이메일은 로그인 식별자 → 전체 사용자에서 유일
    email = Column(String(100), nullable=False, unique=True, index=True)

    # 평문 비밀번호가 아니라 "pbkdf2_sha256$반복수$salt$hash" 형식 문자열 (security.py 참고)
    password_hash = Column(String(255), nullable=False)

    created_at = Column(DateTime, server_default=func.now())


# ------------------------------
# Place: 관광지(장소) 테이블
# ------------------------------
class Place(Base):
    __tablename__ = "places"

    place_id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)

    # 선택 필드는 NULL 대신 빈 문자열로 저장
    description = Column(Text, default="")
    image_url = Column(String(255), default="")
    category = Column(String(50), default="")

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    created_at = Column(DateTime, server_default=func.now())


# ------------------------------
# Rating: 평점 테이블 (사용자 × 장소)
# ------------------------------
class Rating(Base):
    __tablename__ = "ratings"

    rating_id = Column(Integer, primary_key=True, index=True)

    # FK: places 삭제 전에 해당 장소의 평점을 먼저 지워야 함 (crud.delete_place)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    place_id = Column(Integer, ForeignKey("places.place_id"), nullable=False, index=True)

    stars = Column(Integer, nullable=False)
    comment = Column(Text, default="")

    # created_at: 최초 작성 시각 (업서트로 덮어써도 변경하지 않음)
    # updated_at: 기존 평점을 덮어쓴 마지막 시각 (없으면 NULL)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)

    user = relationship("User")
    place = relationship("Place")

    __table_args__ = (
        # 동일 사용자가 동일 장소에 대해 평점은 한 건만
        UniqueConstraint("user_id", "place_id", name="uix_user_place"),
        CheckConstraint("stars BETWEEN 1 AND 5", name="ck_ratings_stars"),
    )
