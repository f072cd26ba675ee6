from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

ROLE_CUSTOMER = "customer"
ROLE_OWNER = "owner"


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    full_name: str | None = None
    role: str = Field(default=ROLE_CUSTOMER, max_length=20)


class User(UserBase, table=True):
    __tablename__ = "users"
    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now, sa_type=DateTime())


class UserCreate(SQLModel):
    email: str
    password: str
    full_name: str | None = None
    role: str = ROLE_CUSTOMER
