# ───────────────────────────────────────────────────────────────
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import configure_mappers

# ─── Local imports ─────────────────────────────────────────────
from src.quiz_portal.config.settings import get_settings
from src.quiz_portal.db.session import create_db_and_tables

# Register every model with SQLAlchemy before mappers are configured
from src.quiz_portal.models import User, Quiz, Question, Option, StudentSession, Answer  # noqa: F401

from src.quiz_portal.routers import auth_router, quiz_router, student_router, teacher_router
from src.quiz_portal.utils.errors import ErrorKind, QuizPortalError
from src.quiz_portal.utils.time import get_utc_time

# ─── Settings & logging ────────────────────────────────────────
settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ─── FastAPI app ───────────────────────────────────────────────
app = FastAPI(
    title=settings.app_name,
    description="Author quizzes, share them by link and run proctored attempts",
    version="1.0.0",
)

# ─── Middlewares ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ─── Error handlers ────────────────────────────────────────────
@app.exception_handler(QuizPortalError)
async def quiz_portal_error_handler(request: Request, exc: QuizPortalError):
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors()), "kind": ErrorKind.VALIDATION_FAILED.value},
    )


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Unhandled database error on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "The database is unavailable.", "kind": ErrorKind.STORE_UNAVAILABLE.value},
    )

# ─── Startup ───────────────────────────────────────────────────
@app.on_event("startup")
async def on_startup():
    logger.info("Configuring SQLAlchemy mappers...")
    try:
        configure_mappers()
        logger.info("Mappers configured successfully.")
    except Exception as e:
        logger.error(f"Mapper configuration failed: {e}", exc_info=True)
        raise

    logger.info("Creating database and tables...")
    try:
        create_db_and_tables()
    except Exception as e:
        logger.error(f"Failed to create database and tables: {e}", exc_info=True)
        raise

# ─── Routers ───────────────────────────────────────────────────
app.include_router(auth_router.router, prefix="/api")
app.include_router(teacher_router.router, prefix="/api")
app.include_router(quiz_router.router, prefix="/api")
app.include_router(student_router.router, prefix="/api")

# ─── Simple endpoints ──────────────────────────────────────────
@app.get("/")
async def root():
    return {
        "message": "Welcome to the Quiz Portal API",
        "docs_url": "/docs",
        "redoc_url": "/redoc",
    }

@app.get("/health")
async def health_check():
    return {"status": "ok", "timestamp": get_utc_time().isoformat()}
