"""
Database schema and connection management.

Uses SQLite with SQLAlchemy for candidate storage. Education and experience
rows are owned by their candidate and are deleted with it.
"""

import uuid
from datetime import datetime
from pathlib import Path
from sqlalchemy import (
    create_engine,
    event,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.engine import Engine
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


class Candidate(Base):
    """Candidate model."""

    __tablename__ = "candidates"

    id = Column(String, primary_key=True, default=_new_id)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    address = Column(String, nullable=False)
    available = Column(Boolean, nullable=False, default=True)
    resume_url = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    education = relationship(
        "Education",
        back_populates="candidate",
        cascade="all, delete-orphan",
        order_by="Education.position",
        collection_class=ordering_list("position"),
        passive_deletes=True,
    )
    experience = relationship(
        "Experience",
        back_populates="candidate",
        cascade="all, delete-orphan",
        order_by="Experience.position",
        collection_class=ordering_list("position"),
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Candidate {self.id} - {self.first_name} {self.last_name}>"


class Education(Base):
    """Academic credential owned by a candidate."""

    __tablename__ = "education"

    id = Column(String, primary_key=True, default=_new_id)
    candidate_id = Column(
        String, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    institution = Column(String, nullable=False)
    title = Column(String, nullable=False)
    degree = Column(String, nullable=False)
    years = Column(Float, nullable=True)

    candidate = relationship("Candidate", back_populates="education")


class Experience(Base):
    """Employment period owned by a candidate. No end_date means ongoing."""

    __tablename__ = "experience"

    id = Column(String, primary_key=True, default=_new_id)
    candidate_id = Column(
        String, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    role = Column(String, nullable=False)
    company = Column(String, nullable=False)
    industry = Column(String, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)

    candidate = relationship("Candidate", back_populates="experience")


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


@event.listens_for(Engine, "connect")
def _configure_sqlite_connection(dbapi_connection, connection_record):
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        # Built-in lower() only folds ASCII; icontains() relies on it for names and emails
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def get_engine(db_path: Path):
    """
    Create an engine for the SQLite database at db_path.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy engine usable from request worker threads
    """
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(db_path)
    Base.metadata.create_all(engine)
    engine.dispose()


def create_session_factory(db_path: Path) -> sessionmaker:
    """
    Build a session factory bound to one engine, for per-request sessions.

    Args:
        db_path: Path to SQLite database file
    """
    engine = get_engine(db_path)
    return sessionmaker(bind=engine, autoflush=False)


def get_session(db_path: Path):
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    return create_session_factory(db_path)()
