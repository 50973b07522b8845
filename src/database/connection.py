"""
Database connection management for the Gmail triage rules engine
"""
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

# Get database URL from environment variable
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///gmail_rules.db')


def make_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine; in-memory SQLite shares one connection"""
    if url in ('sqlite://', 'sqlite:///:memory:'):
        return create_engine(url, connect_args={'check_same_thread': False}, poolclass=StaticPool)
    return create_engine(url)


# Create engine
engine = make_engine()

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = None) -> None:
    """Initialize the database, creating all tables"""
    Base.metadata.create_all(bind=bind or engine)


def get_db_session() -> Session:
    """Get a new database session"""
    return SessionLocal()
