# -----------------------------------------------------------
# places.py — 장소 조회/등록/수정/삭제 및 주변·인기 장소 엔드포인트
# -----------------------------------------------------------

import os
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query  # 라우팅 모듈화 / 의존성 주입 / 에러 응답
from sqlalchemy.orm import Session                           # SQLAlchemy ORM 세션 타입 힌트

from .. import crud
from ..db import get_db                                      # 요청마다 세션 열고 응답 후 닫음
from ..models import User
from ..schemas import (
    MessageOut,
    NearbyIn,
    NearbyListOut,
    PlaceCreatedOut,
    PlaceDetailOut,
    PlaceIn,
    PlaceListOut,
    PathId,
    ReviewListOut,
    TopRatedListOut,
)
from ..security import get_current_user                      # Bearer 토큰 → 로그인 사용자

# 인기 장소 기본 개수 (.env에 없으면 10)
TOP_RATED_LIMIT = int(os.getenv("TOP_RATED_LIMIT", "10"))

# 이 모듈의 엔드포인트는 "/api/places"로 시작
router = APIRouter(prefix="/api/places", tags=["places"])


@router.get("", response_model=PlaceListOut)
def list_places(
    skip: int = Query(0, ge=0),                      # OFFSET (기본 0)
    limit: Optional[int] = Query(None, ge=1),        # LIMIT (기본: 전체)
    db: Session = Depends(get_db),
):
    """
    전체 장소 목록을 평균 별점(avg_rating)·리뷰 수(review_count)와 함께 반환합니다.
    - 평점이 없는 장소는 avg_rating=0, review_count=0
    - skip/limit을 주지 않으면 모든 행을 반환
    """
    return {"places": crud.list_places(db, skip=skip, limit=limit)}


@router.get("/top-rated/list", response_model=TopRatedListOut)
def top_rated(
    limit: int = Query(TOP_RATED_LIMIT, ge=1),
    db: Session = Depends(get_db),
):
    """
    평점이 1건 이상 있는 장소 중 평균 별점 상위 'limit'개.
    - 평균이 같으면 리뷰 수가 많은 장소가 앞
    """
    return {"top_rated_places": crud.top_rated_places(db, limit=limit)}


@router.post("/nearby", response_model=NearbyListOut)
def nearby(payload: NearbyIn, db: Session = Depends(get_db)):
    """
    기준 좌표(latitude, longitude)에서 radius(km) 미만 거리의 장소를 가까운 순으로 반환합니다.

    요청 바디(JSON) 예:
    {
      "latitude": 2.1966,
      "longitude": 102.2472,
      "radius": 5
    }
    """
    places = crud.nearby_places(db, payload.latitude, payload.longitude, payload.radius)
    return {"nearby_places": places}


@router.get("/{place_id}", response_model=PlaceDetailOut)
def get_place(place_id: PathId, db: Session = Depends(get_db)):
    """
    장소 1건 + 집계값 + 리뷰 목록(최신순, 작성자 username 포함).
    """
    place = crud.get_place(db, place_id)
    if place is None:
        raise HTTPException(status_code=404, detail="Place not found")
    return place


@router.get("/{place_id}/ratings", response_model=ReviewListOut)
def get_place_ratings(place_id: PathId, db: Session = Depends(get_db)):
    """장소의 리뷰 목록만 반환 (리뷰가 없으면 빈 리스트)"""
    return {"ratings": crud.list_place_reviews(db, place_id)}


@router.post("", response_model=PlaceCreatedOut, status_code=201)
def create_place(
    payload: PlaceIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),   # 로그인 필요
):
    """
    장소 등록.
    - name/latitude/longitude 필수 (위도·경도 0 허용)
    - description/image_url/category는 생략 시 빈 문자열
    """
    place = crud.create_place(db, payload.model_dump())
    return {"success": True, "place_id": place.place_id, "message": "Place added successfully"}


@router.put("/{place_id}", response_model=MessageOut)
def update_place(
    place_id: PathId,
    payload: PlaceIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """장소 수정: 모든 필드를 요청 값으로 덮어씀 (부분 수정 아님)"""
    place = crud.update_place(db, place_id, payload.model_dump())
    if place is None:
        raise HTTPException(status_code=404, detail="Place not found")
    return {"success": True, "message": "Place updated successfully"}


@router.delete("/{place_id}", response_model=MessageOut)
def delete_place(
    place_id: PathId,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """장소 삭제: 해당 장소의 평점을 먼저 지운 뒤 장소 삭제 (하나의 트랜잭션)"""
    if not crud.delete_place(db, place_id):
        raise HTTPException(status_code=404, detail="Place not found")
    return {"success": True, "message": "Place deleted successfully"}


# -----------------------------------------------------------
# [추가 설명 / 실전 팁]
# -----------------------------------------------------------
# 1) 예시 호출
#    - GET    /api/places
#    - GET    /api/places?skip=20&limit=20
#    - GET    /api/places/3
#    - GET    /api/places/top-rated/list?limit=5
#    - POST   /api/places/nearby            (JSON: {"latitude": 2.19, "longitude": 102.24, "radius": 3})
#    - POST   /api/places                   (Authorization: Bearer <token>)
#    - PUT    /api/places/3                 (Authorization: Bearer <token>)
#    - DELETE /api/places/3                 (Authorization: Bearer <token>)
#
# 2) 주변 검색은 모든 장소의 거리를 파이썬에서 계산합니다(geo.py).
#    장소 수가 많아지면 위경도 bbox로 먼저 후보를 줄이는 쿼리를 앞에 두면 됩니다.
