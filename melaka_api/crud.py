# -----------------------------------------------------------------------------
# crud.py — 장소/평점/사용자 읽기·쓰기 함수 모음
# - 평점 집계(평균/개수)는 저장하지 않고 조회 시점에 계산
# - 쓰기 함수는 마지막에 한 번만 commit → 여러 문장이 하나의 트랜잭션
# -----------------------------------------------------------------------------
from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from .geo import within_radius
from .models import Place, Rating, User

# 장소 목록/상세에 그대로 노출하는 컬럼
PLACE_FIELDS = ("name", "description", "image_url", "category", "latitude", "longitude")


def _place_dict(place: Place, **extra) -> dict:
    """Place ORM → 응답용 dict (선택 필드 NULL은 빈 문자열로)"""
    data = {
        "place_id": place.place_id,
        "name": place.name,
        "description": place.description or "",
        "image_url": place.image_url or "",
        "category": place.category or "",
        "latitude": place.latitude,
        "longitude": place.longitude,
    }
    data.update(extra)
    return data


def _rating_aggregates(db: Session):
    """place_id별 평균 별점/평점 개수 서브쿼리"""
    return (
        db.query(
            Rating.place_id.label("place_id"),
            func.avg(Rating.stars).label("avg_rating"),
            func.count(Rating.rating_id).label("review_count"),
        )
        .group_by(Rating.place_id)
        .subquery()
    )


def _with_aggregates(place: Place, avg_rating, review_count) -> dict:
    return _place_dict(
        place,
        created_at=place.created_at,
        avg_rating=float(avg_rating) if avg_rating is not None else 0,
        review_count=int(review_count or 0),
    )


# =============================================================================
# 장소 조회
# =============================================================================
def list_places(db: Session, skip: int = 0, limit: Optional[int] = None) -> List[dict]:
    agg = _rating_aggregates(db)
    query = (
        db.query(Place, agg.c.avg_rating, agg.c.review_count)
        .outerjoin(agg, agg.c.place_id == Place.place_id)
        .order_by(Place.place_id)
    )
    if skip:
        query = query.offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return [_with_aggregates(p, avg, cnt) for p, avg, cnt in query.all()]


def list_place_reviews(db: Session, place_id: int) -> List[dict]:
    """장소의 평점 목록 (최신순, 작성자 username 포함)"""
    rows = (
        db.query(Rating)
        .options(joinedload(Rating.user, innerjoin=True))
        .filter(Rating.place_id == place_id)
        .order_by(Rating.created_at.desc(), Rating.rating_id.desc())
        .all()
    )
    return [
        {
            "rating_id": r.rating_id,
            "user_id": r.user_id,
            "place_id": r.place_id,
            "stars": r.stars,
            "comment": r.comment or "",
            "created_at": r.created_at,
            "updated_at": r.updated_at,
            "username": r.user.username,
        }
        for r in rows
    ]


def get_place(db: Session, place_id: int) -> Optional[dict]:
    agg = _rating_aggregates(db)
    row = (
        db.query(Place, agg.c.avg_rating, agg.c.review_count)
        .outerjoin(agg, agg.c.place_id == Place.place_id)
        .filter(Place.place_id == place_id)
        .one_or_none()
    )
    if row is None:
        return None

    place, avg, cnt = row
    data = _with_aggregates(place, avg, cnt)
    data["reviews"] = list_place_reviews(db, place_id)
    return data


def top_rated_places(db: Session, limit: int = 10) -> List[dict]:
    """
    평점이 1건 이상인 장소만, 평균 내림차순 → 평점 개수 내림차순.
    (INNER JOIN이라 평점 없는 장소는 결과에 아예 나오지 않음)
    """
    agg = _rating_aggregates(db)
    rows = (
        db.query(Place, agg.c.avg_rating, agg.c.review_count)
        .join(agg, agg.c.place_id == Place.place_id)
        .order_by(agg.c.avg_rating.desc(), agg.c.review_count.desc(), Place.place_id)
        .limit(limit)
        .all()
    )
    return [
        _place_dict(p, average_rating=float(avg), review_count=int(cnt))
        for p, avg, cnt in rows
    ]


def nearby_places(db: Session, latitude: float, longitude: float, radius_km: float) -> List[dict]:
    """기준 좌표에서 radius_km 미만인 장소 (가까운 순)"""
    places = db.query(Place).all()
    hits = within_radius(
        latitude,
        longitude,
        radius_km,
        ((p, p.latitude, p.longitude) for p in places),
    )
    return [_place_dict(p, distance=d) for p, d in hits]


# =============================================================================
# 장소 등록/수정/삭제
# =============================================================================
def _apply_place_fields(place: Place, fields: dict) -> None:
    # 부분 수정이 아니라 전체 덮어쓰기: 생략된 선택 필드는 빈 문자열
    place.name = fields["name"]
    place.description = fields.get("description") or ""
    place.image_url = fields.get("image_url") or ""
    place.category = fields.get("category") or ""
    place.latitude = fields["latitude"]
    place.longitude = fields["longitude"]


def create_place(db: Session, fields: dict) -> Place:
    place = Place()
    _apply_place_fields(place, fields)
    db.add(place)
    db.commit()
    db.refresh(place)
    logger.info("place created: id={} name={!r}", place.place_id, place.name)
    return place


def update_place(db: Session, place_id: int, fields: dict) -> Optional[Place]:
    place = db.get(Place, place_id)
    if place is None:
        return None

    _apply_place_fields(place, fields)
    db.commit()
    db.refresh(place)
    logger.info("place updated: id={}", place_id)
    return place


def delete_place(db: Session, place_id: int) -> bool:
    """
    장소 삭제. ratings → places 순서로 지우고 한 번에 commit.
    중간에 실패하면 둘 다 롤백되어 "평점만 지워진 장소"가 남지 않음.
    """
    place = db.get(Place, place_id)
    if place is None:
        return False

    try:
        removed = (
            db.query(Rating)
            .filter(Rating.place_id == place_id)
            .delete(synchronize_session=False)
        )
        db.delete(place)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("place deleted: id={} (ratings removed: {})", place_id, removed)
    return True


# =============================================================================
# 평점
# =============================================================================
def _find_rating(db: Session, user_id: int, place_id: int, lock: bool = False) -> Optional[Rating]:
    query = db.query(Rating).filter(Rating.user_id == user_id, Rating.place_id == place_id)
    if lock:
        # MySQL: SELECT ... FOR UPDATE (SQLite는 무시)
        query = query.with_for_update()
    return query.one_or_none()


def upsert_rating(
    db: Session, user_id: int, place_id: int, stars: int, comment: Optional[str]
) -> Tuple[Rating, bool]:
    """
    (user_id, place_id) 평점을 업서트하고 (Rating, 새로 만들었는지)를 반환.
    - 이미 있으면 UPDATE: 같은 rating_id, created_at 유지, updated_at 갱신
    - 없으면 INSERT
    - 동시 요청이 먼저 INSERT해서 UNIQUE 제약에 걸리면 롤백 후 그 행을 UPDATE
    """
    comment = comment or ""
    rating = _find_rating(db, user_id, place_id, lock=True)
    created = rating is None

    if rating is None:
        rating = Rating(user_id=user_id, place_id=place_id, stars=stars, comment=comment)
        db.add(rating)
    else:
        rating.stars = stars
        rating.comment = comment
        rating.updated_at = func.now()

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if not created:
            raise
        rating = _find_rating(db, user_id, place_id, lock=True)
        if rating is None:
            raise
        rating.stars = stars
        rating.comment = comment
        rating.updated_at = func.now()
        db.commit()
        created = False

    db.refresh(rating)
    logger.info(
        "rating {}: id={} user={} place={} stars={}",
        "added" if created else "updated",
        rating.rating_id,
        user_id,
        place_id,
        stars,
    )
    return rating, created


def rating_statistics(db: Session) -> List[dict]:
    """장소별 평점 통계 (평점 없는 장소는 모두 0), 평균 내림차순"""
    avg_stars = func.avg(Rating.stars)
    rows = (
        db.query(
            Place.place_id,
            Place.name,
            func.count(Rating.rating_id),
            avg_stars,
            func.min(Rating.stars),
            func.max(Rating.stars),
        )
        .outerjoin(Rating, Rating.place_id == Place.place_id)
        .group_by(Place.place_id, Place.name)
        .order_by(func.coalesce(avg_stars, 0).desc(), Place.place_id)
        .all()
    )
    return [
        {
            "place_id": place_id,
            "name": name,
            "total_reviews": int(total or 0),
            "average_rating": float(avg) if avg is not None else 0,
            "lowest_rating": int(low or 0),
            "highest_rating": int(high or 0),
        }
        for place_id, name, total, avg, low, high in rows
    ]


# =============================================================================
# 사용자
# =============================================================================
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).one_or_none()


def create_user(db: Session, username: str, email: str, password_hash: str) -> User:
    """INSERT 후 commit. 이메일 중복이면 IntegrityError가 그대로 올라감"""
    user = User(username=username, email=email, password_hash=password_hash)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("user registered: id={} email={}", user.user_id, email)
    return user


def reviewed_places(db: Session, user_id: int) -> List[dict]:
    """사용자가 평점을 남긴 장소 목록 (최근 평점순)"""
    rows = (
        db.query(Rating)
        .options(joinedload(Rating.place, innerjoin=True))
        .filter(Rating.user_id == user_id)
        .order_by(Rating.created_at.desc(), Rating.rating_id.desc())
        .all()
    )
    return [
        _place_dict(r.place, user_rating=r.stars, user_comment=r.comment or "")
        for r in rows
    ]
