# -----------------------------------------------------------
# ratings.py — 평점 등록(업서트) / 평점 통계 엔드포인트
# -----------------------------------------------------------

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_db
from ..models import Place, User
from ..schemas import RatingIn, RatingStatsOut, RatingSubmitOut
from ..security import get_current_user

router = APIRouter(prefix="/api/ratings", tags=["ratings"])


@router.post(
    "",
    response_model=RatingSubmitOut,
    responses={201: {"model": RatingSubmitOut, "description": "Rating added"}},   # 200: 기존 평점 수정
)
def submit_rating(
    payload: RatingIn,
    response: Response,                       # 생성(201)/수정(200)에 따라 상태코드 지정
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    로그인한 사용자의 (place_id, stars, comment) 평점을 업서트합니다.
    - 이미 해당 장소에 평점이 있으면 UPDATE → 200
    - 없으면 INSERT → 201

    요청 바디(JSON) 예:
    {
      "place_id": 1,
      "stars": 5,
      "comment": "great"
    }
    """
    # 바디의 user_id는 선택 항목. 보냈다면 토큰의 사용자와 같아야 함
    if payload.user_id is not None and payload.user_id != user.user_id:
        raise HTTPException(status_code=403, detail="user_id does not match the logged-in user")

    if not 1 <= payload.stars <= 5:
        raise HTTPException(status_code=400, detail="Stars must be between 1 and 5")

    if db.get(Place, payload.place_id) is None:
        raise HTTPException(status_code=404, detail="Place not found")

    rating, created = crud.upsert_rating(
        db, user.user_id, payload.place_id, payload.stars, payload.comment
    )

    response.status_code = 201 if created else 200
    return {
        "success": True,
        "rating_id": rating.rating_id,
        "message": "Rating added successfully" if created else "Rating updated successfully",
    }


@router.get("/statistics", response_model=RatingStatsOut)
def statistics(db: Session = Depends(get_db)):
    """장소별 리뷰 수 / 평균 / 최저 / 최고 별점 (평균 내림차순)"""
    return {"rating_statistics": crud.rating_statistics(db)}
