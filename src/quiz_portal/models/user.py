# File location: src/quiz_portal/models/user.py
import uuid
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from sqlmodel import SQLModel, Field, Relationship

from src.quiz_portal.utils.time import get_utc_time

if TYPE_CHECKING:
    from src.quiz_portal.models.quiz import Quiz


class User(SQLModel, table=True):
    __table_args__ = {"extend_existing": True}
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(index=True, unique=True)
    full_name: Optional[str] = None
    hashed_password: str
    role: str = Field(default="teacher")  # teacher, admin, student
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=get_utc_time)

    quizzes: List["Quiz"] = Relationship(back_populates="teacher")

    @property
    def is_teacher(self) -> bool:
        return self.role in ("teacher", "admin")
