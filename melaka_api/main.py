# ------------------------------------------------------------
# main.py — FastAPI 앱 / 미들웨어 / 에러 핸들러 / 라우터 등록 진입점
# ------------------------------------------------------------

import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import init_db
from .log import setup_logging
from .routers import places, ratings, users   # 모듈화된 라우터들(장소/평점/유저)

setup_logging()

app = FastAPI(title="Visit Melaka 2025 API")

# -------------------------------
# CORS 설정
# -------------------------------
# - 프런트엔드(예: http://localhost:3000)와 API(:3001) 오리진이 다르므로 필요
# - CORS_ORIGINS="https://a.com,https://b.com" 처럼 쉼표로 제한 가능 (기본 "*")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------
# 에러 응답 형식 통일: {"success": false, "message": "..."}
# -------------------------------
def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Pydantic 검증 실패는 422 대신 400
    errors = exc.errors()
    if any(e.get("type") == "missing" for e in errors):
        message = "Missing required fields"
    else:
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"Invalid request data: {field}: {first.get('msg', 'invalid value')}"
    return _error(400, message)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("database error on {} {}", request.method, request.url.path)
    return _error(500, f"Database error: {exc}")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled error on {} {}", request.method, request.url.path)
    return _error(500, f"Internal server error: {exc}")


# -------------------------------
# 라우터 등록
# -------------------------------
# - places : /api/places
# - ratings: /api/ratings
# - users  : /api/users
app.include_router(places.router)
app.include_router(ratings.router)
app.include_router(users.router)


@app.on_event("startup")
def on_startup() -> None:
    # 존재하지 않는 테이블만 생성 (DB 자체는 미리 만들어 두어야 함)
    init_db()
    logger.info("database tables ready")


@app.get("/")
def root():
    return {"ok": True, "service": "visit-melaka-2025", "message": "Welcome to Visit Melaka 2025 API"}


@app.get("/health")
def health():
    return {"status": "ok"}


def run() -> None:
    """`melaka-api` 콘솔 스크립트 진입점 (HOST/PORT 환경변수)"""
    import uvicorn

    uvicorn.run(
        "melaka_api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001")),
    )


if __name__ == "__main__":
    run()
