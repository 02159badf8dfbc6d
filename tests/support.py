"""Shared builders for tests: isolated SQLite databases, users, grievances."""

from datetime import datetime

from sqlalchemy import create_engine, null
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from grievance_tracker.core.security import hash_password
from grievance_tracker.models import Base, Grievance, User
from grievance_tracker.schemas.auth import CurrentUser

DEFAULT_PASSWORD = "secret1"

# Hashing is slow even at low cost; reuse one hash for fixture users.
_DEFAULT_HASH = hash_password(DEFAULT_PASSWORD)


def make_sessionmaker() -> sessionmaker:
    """Fresh in-memory database with all tables; one shared connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def add_user(
    db: Session,
    email: str,
    role: str = "user",
    name: str | None = None,
) -> User:
    user = User(email=email, password_hash=_DEFAULT_HASH, name=name, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def subject_for(user: User) -> CurrentUser:
    return CurrentUser(id=user.id, email=user.email, name=user.name, role=user.role)


def add_grievance(
    db: Session,
    owner: User,
    title: str = "Broken chair",
    status: str | None = "open",
    created_at: datetime | None = None,
) -> Grievance:
    """Insert a grievance directly. status=None stores SQL NULL (legacy row)."""
    kwargs = {}
    if created_at is not None:
        kwargs["created_at"] = created_at
        kwargs["updated_at"] = created_at
    grievance = Grievance(
        title=title,
        description=f"{title} description",
        status=null() if status is None else status,
        created_by=owner.id,
        **kwargs,
    )
    db.add(grievance)
    db.commit()
    db.refresh(grievance)
    return grievance


def naive(value: datetime) -> datetime:
    """SQLite returns naive datetimes; compare everything without tzinfo."""
    return value.replace(tzinfo=None)
