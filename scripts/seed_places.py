"""
기본 관광지 데이터 적재 스크립트
------------------------------
places 테이블이 비어 있을 때 멜라카 주요 관광지를 넣습니다.

    python scripts/seed_places.py            # 비어 있을 때만 적재
    python scripts/seed_places.py --force    # 이미 데이터가 있어도 추가
"""

from __future__ import annotations

import argparse
import sys

from loguru import logger
from sqlalchemy.orm import Session

from melaka_api import crud
from melaka_api.db import SessionLocal, init_db
from melaka_api.log import setup_logging
from melaka_api.models import Place

DEFAULT_PLACES = [
    {"name": "Mahkota Parade", "description": "Shopping Center near Klebang Beach",
     "category": "Shopping", "latitude": 2.1894375051968415, "longitude": 102.2497642386984},
    {"name": "Aeon Bandaraya", "description": "Shopping Center in Bandaraya Melaka",
     "category": "Shopping", "latitude": 2.214867083728227, "longitude": 102.24635890095817},
    {"name": "Aeon Ayer Keroh", "description": "Shopping Center in Ayer Keroh",
     "category": "Shopping", "latitude": 2.2342510391130403, "longitude": 102.28238199634038},
    {"name": "Melaka Premium Outlet", "description": "Shopping Center in Melaka",
     "category": "Shopping", "latitude": 2.4436710205321597, "longitude": 102.20417570047923},
    {"name": "Melaka Wonderland", "description": "Water Theme Park in Ayer Keroh",
     "category": "Attraction", "latitude": 2.2809107922639793, "longitude": 102.29444496458495},
    {"name": "Zoo Melaka", "description": "Zoo in Ayer Keroh",
     "category": "Attraction", "latitude": 2.2765622753900105, "longitude": 102.29865525564288},
    {"name": "Menara Taming Sari", "description": "Revolving tower offering panoramic views of Melaka",
     "category": "Attraction", "latitude": 2.1956, "longitude": 102.2489},
    {"name": "Melaka River Cruise", "description": "Scenic boat ride along the Melaka River",
     "category": "Attraction", "latitude": 2.1958, "longitude": 102.2478},
    {"name": "Cheng Hoon Teng Temple", "description": "Oldest Chinese temple in Malaysia",
     "category": "Attraction", "latitude": 2.1966, "longitude": 102.2472},
    {"name": "Kampung Kling Mosque", "description": "One of the oldest mosques in Melaka",
     "category": "Attraction", "latitude": 2.1968, "longitude": 102.2475},
    {"name": "St. Francis Xavier Church", "description": "19th-century Gothic-style church",
     "category": "Attraction", "latitude": 2.1945, "longitude": 102.2492},
    {"name": "Klebang Beach", "description": "Popular beach with coconut shake stalls",
     "category": "Attraction", "latitude": 2.2167, "longitude": 102.2000},
    {"name": "Melaka Botanical Garden", "description": "Beautiful garden with various plant species",
     "category": "Attraction", "latitude": 2.2500, "longitude": 102.2833},
]


def seed_places(db: Session, force: bool = False) -> int:
    """DEFAULT_PLACES 적재 후 추가된 개수 반환 (테이블이 비어 있지 않으면 0)"""
    if not force and db.query(Place).first() is not None:
        logger.info("places table already has rows; skipping seed")
        return 0

    for fields in DEFAULT_PLACES:
        crud.create_place(db, fields)
    return len(DEFAULT_PLACES)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed default Melaka places")
    parser.add_argument("--force", action="store_true", help="insert even if places exist")
    args = parser.parse_args(argv)

    setup_logging()
    init_db()

    db = SessionLocal()
    try:
        inserted = seed_places(db, force=args.force)
    finally:
        db.close()

    logger.info("seeded {} places", inserted)
    return 0


if __name__ == "__main__":
    sys.exit(main())
