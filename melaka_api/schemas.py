from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import Path
from pydantic import BaseModel, Field

# BIGINT 상한. 이보다 큰 id는 드라이버에서 OverflowError가 나므로 요청 단계에서 400
MAX_DB_ID = 2**63 - 1

# 경로 파라미터용 id 타입 (/api/places/{place_id}, /api/users/{user_id})
PathId = Annotated[int, Path(le=MAX_DB_ID)]


# ------------------------------------------------------------
# 공통 응답: 변경(생성/수정/삭제) 결과 메시지
# ------------------------------------------------------------
class MessageOut(BaseModel):
    success: bool = True
    message: str


# ------------------------------------------------------------
# PlaceIn: 장소 등록/수정 요청 바디
#  - name/latitude/longitude 필수 (위도·경도 0은 정상 값)
#  - 나머지는 생략 시 빈 문자열로 저장
# ------------------------------------------------------------
class PlaceIn(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    latitude: float
    longitude: float


class PlaceBase(BaseModel):
    place_id: int
    name: str
    description: str = ""
    image_url: str = ""
    category: str = ""
    latitude: float
    longitude: float

    class Config:
        # ORM 객체(Place)로부터 필드 맵핑 허용
        from_attributes = True


# ------------------------------------------------------------
# PlaceOut: 목록/상세에서 내보낼 장소 + 집계값
# ------------------------------------------------------------
class PlaceOut(PlaceBase):
    created_at: Optional[datetime] = None
    avg_rating: float = 0       # 평점 평균 (평점이 없으면 0)
    review_count: int = 0       # 평점(리뷰) 개수


class PlaceListOut(BaseModel):
    places: List[PlaceOut]


class PlaceCreatedOut(MessageOut):
    place_id: int


# ------------------------------------------------------------
# ReviewOut: 장소 상세에 붙는 리뷰 1건 (작성자 username 포함)
# ------------------------------------------------------------
class ReviewOut(BaseModel):
    rating_id: int
    user_id: int
    place_id: int
    stars: int
    comment: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    username: str


class PlaceDetailOut(PlaceOut):
    reviews: List[ReviewOut] = []


class ReviewListOut(BaseModel):
    ratings: List[ReviewOut]


class TopRatedPlaceOut(PlaceBase):
    average_rating: float
    review_count: int


class TopRatedListOut(BaseModel):
    top_rated_places: List[TopRatedPlaceOut]


# ------------------------------------------------------------
# 주변 장소 검색: 기준 좌표 + 반경(km)
# ------------------------------------------------------------
class NearbyIn(BaseModel):
    latitude: float
    longitude: float
    radius: float


class NearbyPlaceOut(PlaceBase):
    distance: float  # km


class NearbyListOut(BaseModel):
    nearby_places: List[NearbyPlaceOut]


# ------------------------------------------------------------
# RatingIn: 평점 등록/수정 요청 바디
#  - 실제 작성자는 세션 토큰의 사용자. user_id는 보내도 되지만 토큰과 같아야 함
#  - stars 범위(1~5)는 라우터에서 별도 메시지로 검증
# ------------------------------------------------------------
class RatingIn(BaseModel):
    place_id: int = Field(..., le=MAX_DB_ID)
    stars: int
    comment: Optional[str] = None
    user_id: Optional[int] = Field(None, le=MAX_DB_ID)


class RatingSubmitOut(MessageOut):
    rating_id: int


class RatingStatOut(BaseModel):
    place_id: int
    name: str
    total_reviews: int
    average_rating: float
    lowest_rating: int
    highest_rating: int


class RatingStatsOut(BaseModel):
    rating_statistics: List[RatingStatOut]


# ------------------------------------------------------------
# 사용자: 가입/로그인
# ------------------------------------------------------------
class RegisterIn(BaseModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterOut(MessageOut):
    user_id: int


class LoginIn(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginOut(BaseModel):
    success: bool = True
    user_id: int
    username: str
    email: str
    access_token: str
    token_type: str = "bearer"


class ReviewedPlaceOut(PlaceBase):
    user_rating: int
    user_comment: str = ""


class ReviewedPlaceListOut(BaseModel):
    reviewed_places: List[ReviewedPlaceOut]
