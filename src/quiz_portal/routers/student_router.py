# File: src/quiz_portal/routers/student_router.py

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..db.session import get_db
from ..controllers import session_controller
from ..schemas.session import SessionStatusRead, SessionProgressRead

router = APIRouter(
    prefix="/student",
    tags=["Student Sessions"],
)


@router.get(
    "/session/{session_token}/status",
    response_model=SessionStatusRead,
    summary="Get the status of an attempt",
)
def get_session_status(session_token: str, db: Session = Depends(get_db)):
    return session_controller.get_session_status(db, session_token)


@router.get(
    "/session/{session_token}/progress",
    response_model=SessionProgressRead,
    summary="Get how far an active attempt has got",
)
def get_session_progress(session_token: str, db: Session = Depends(get_db)):
    return session_controller.get_session_progress(db, session_token)
