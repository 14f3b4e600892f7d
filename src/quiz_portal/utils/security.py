# File location: src/quiz_portal/utils/security.py
import logging
import uuid
from datetime import timedelta
from typing import Callable, TypeVar

from fastapi import HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from src.quiz_portal.config.settings import get_settings
from src.quiz_portal.utils.time import get_utc_time

logger = logging.getLogger(__name__)

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

T = TypeVar("T")

TOKEN_MINT_ATTEMPTS = 3


def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = get_utc_time() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)

def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

def generate_share_token() -> str:
    return str(uuid.uuid4())

def generate_session_token() -> str:
    return uuid.uuid4().hex

def commit_with_unique_token(
    db: Session,
    instance: T,
    attribute: str,
    generate: Callable[[], str],
    attempts: int = TOKEN_MINT_ATTEMPTS,
) -> T:
    """
    Mint an opaque token into `attribute`, add and commit `instance`.

    The unique index on the column is the source of truth; on a collision the
    transaction is rolled back and a fresh token is tried.
    """
    attempt = 0
    while True:
        attempt += 1
        setattr(instance, attribute, generate())
        db.add(instance)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt >= attempts:
                raise
            logger.warning(f"Token collision on {type(instance).__name__}.{attribute}, retrying ({attempt}/{attempts})")
            continue
        db.refresh(instance)
        return instance
