# -----------------------------------------------------------------------------
# Loguru 기반 로깅 설정
# - 기본 stderr 핸들러를 LOG_LEVEL로 교체
# - LOG_FILE이 지정되면 회전 파일 핸들러 추가
# -----------------------------------------------------------------------------
import os
import sys
from pathlib import Path

from loguru import logger


def setup_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()

    logger.remove()  # 기본 핸들러 제거
    logger.add(sys.stderr, level=level, backtrace=False, diagnose=False)

    log_file = os.getenv("LOG_FILE")
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(exist_ok=True, parents=True)
        logger.add(
            path,
            rotation="10 MB",
            retention="10 files",
            enqueue=True,  # 멀티프로세스 안전
            backtrace=True,
            diagnose=False,  # 예외 로그에 변수값(비밀번호 등) 노출 방지
            level=level,
        )
