import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import settings
from core.database import engine
from core.errors import AppError
from models.base import Base
# Модели импортируются ради регистрации таблиц в Base.metadata
from models import confession, match, message, notification, photo, user  # noqa: F401

from routers.auth import router as auth_router
from routers.users import router as users_router
from routers.photos import router as photos_router
from routers.confessions import router as confessions_router
from routers.matches import router as matches_router
from routers.chat import router as chat_router
from routers.notifications import router as notifications_router
from routers.health import router as health_router
from routers.admin import router as admin_router

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Сначала создаём все таблицы
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    # Закрываем все соединения пула
    await engine.dispose()


app = FastAPI(
    title="Campus Crush Backend",
    version="0.1.0",
    description="Backend для приложения знакомств и анонимных признаний «Campus Crush»",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_request_time(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    process_time = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"{request.method} {request.url.path} completed in {process_time:.2f} ms"
    )
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in e["loc"]),
                        "message": e["msg"],
                    }
                    for e in exc.errors()
                ],
            },
        },
    )


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(photos_router)
app.include_router(confessions_router)
app.include_router(matches_router)
app.include_router(chat_router)
app.include_router(notifications_router)
app.include_router(health_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    return {"message": "Campus Crush Backend"}
