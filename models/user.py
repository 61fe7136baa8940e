from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, String, func


from models.base import Base


# Users are created exclusively from identity provider lifecycle events
class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    external_id = Column(String, nullable=False, unique=True)  # Identity provider user id
    email = Column(String, nullable=False, unique=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class UserDTO(BaseModel):
    id: int | None = None
    external_id: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
