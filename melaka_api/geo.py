# ------------------------------------------------------------
# geo.py — 좌표 간 대원(great-circle) 거리 계산
# ------------------------------------------------------------

from __future__ import annotations

import math
from typing import Iterable, List, Tuple, TypeVar

# 지구 평균 반지름(km)
EARTH_RADIUS_KM = 6371.0

T = TypeVar("T")


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    두 위경도 좌표 사이의 거리(km)를 구면 코사인 법칙으로 계산합니다.

        d = R * acos( cos(φ1)·cos(φ2)·cos(λ2 − λ1) + sin(φ1)·sin(φ2) )

    같은 좌표에서는 부동소수 오차로 acos 인자가 1을 살짝 넘을 수 있어
    [-1, 1]로 잘라서 계산합니다 (같은 좌표 → 0.0).
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lng2) - math.radians(lng1)

    cos_angle = (
        math.cos(phi1) * math.cos(phi2) * math.cos(d_lambda)
        + math.sin(phi1) * math.sin(phi2)
    )
    cos_angle = max(-1.0, min(1.0, cos_angle))
    return EARTH_RADIUS_KM * math.acos(cos_angle)


def within_radius(
    lat: float,
    lng: float,
    radius_km: float,
    items: Iterable[Tuple[T, float, float]],
) -> List[Tuple[T, float]]:
    """
    (item, latitude, longitude) 목록 중 기준점에서 radius_km 미만인 것만
    (item, 거리) 형태로 거리 오름차순 반환합니다.
    """
    hits = []
    for item, item_lat, item_lng in items:
        d = distance_km(lat, lng, item_lat, item_lng)
        if d < radius_km:
            hits.append((item, d))
    hits.sort(key=lambda pair: pair[1])
    return hits
