"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config.loader import get_settings
from core.ledger import LedgerError
from core.logging import level_from_name, setup_logging

# 로깅 설정 (콘솔 + 파일)
setup_logging("web", console_level=level_from_name(get_settings().log_level))

from web.routes import (  # noqa: E402
    adjustments,
    audit,
    health,
    orders,
    transactions,
    transfers,
    wallets,
    workshop_jobs,
)
from web.routes.health import API_VERSION  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema

    settings = get_settings()

    # 시작 시 - DB 스키마 자동 초기화
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)

    logger.info(
        f"Web 시작: {settings.environment.value}",
        extra={"db_path": str(settings.db_path)},
    )
    yield
    logger.info("Web 종료")


app = FastAPI(
    title="Cashbook API",
    description="지갑 Ledger / 이체 / 채무 정산 API",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================================================
# 예외 처리
# =========================================================================


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Ledger 예외 → {"error", "message", "details"} 응답"""
    if exc.http_status >= 500:
        logger.error(
            f"처리되지 않은 Ledger 오류: {exc.message}",
            extra={"path": request.url.path, "code": exc.code},
        )
    else:
        logger.info(
            f"요청 거부 ({exc.code}): {exc.message}",
            extra={"path": request.url.path},
        )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(wallets.router)
app.include_router(transfers.router)
app.include_router(adjustments.router)
app.include_router(transactions.router)
app.include_router(orders.router)
app.include_router(workshop_jobs.router)
app.include_router(audit.router)
