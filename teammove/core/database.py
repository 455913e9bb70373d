"""
Database configuration and connection management.

This module provides:
- SQLAlchemy engine and session management
- Connection pooling with sane defaults
- Test database support (in-memory SQLite included)
- Table definitions for the plan catalog, companies and carpooling resources
"""
from typing import Optional
from contextlib import contextmanager
from sqlalchemy import create_engine, MetaData, Table, Column, Integer, String, DateTime, Boolean, JSON, Text, Index, ForeignKey, UniqueConstraint, text
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import func
import logging
import os

from teammove.core.config import settings


logger = logging.getLogger("teammove")

# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Connection pooling configuration
POOL_SIZE = 10
MAX_OVERFLOW = 20
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600  # Recycle connections after 1 hour

# Global engine and session factory
_engine = None
_SessionLocal = None


def get_database_url() -> Optional[str]:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url

    return settings.DATABASE_URL


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine, _SessionLocal

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    if url.startswith("sqlite"):
        # Single shared connection so in-memory databases survive across sessions
        _engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    else:
        _engine = create_engine(
            url,
            poolclass=QueuePool,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            echo=False,  # Set to True for SQL query logging
        )

    # Create session factory
    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=_engine
    )

    return _engine


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def get_session_factory():
    """Get the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for database sessions.

    Usage:
        with get_db_session() as session:
            session.execute(...)
    """
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables():
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    engine = get_engine()
    metadata.create_all(bind=engine)


def drop_all_tables():
    """
    Drop all tables defined in metadata.

    WARNING: This is destructive! Only use in tests or development.
    """
    engine = get_engine()
    metadata.drop_all(bind=engine)


def reset_database():
    """
    Reset the database by dropping and recreating all tables.

    WARNING: This is destructive! Only use in tests.
    """
    drop_all_tables()
    create_all_tables()


def check_connection() -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connection check failed: {e}")
        return False


# Plan catalog. One row per tier; features JSON mirrors the static tables in
# teammove.features.plans.permissions and is written by seed_plans().
plans = Table(
    'plans',
    metadata,
    Column('tier', String(20), primary_key=True),
    Column('name', String(100), nullable=False),
    Column('description', Text, nullable=True),
    Column('monthly_price', String(20), nullable=False),
    Column('annual_price', String(20), nullable=False),
    Column('features', JSON, nullable=False),
    Column('requires_quote', Boolean, nullable=False, server_default='0'),
    Column('is_active', Boolean, nullable=False, server_default='1'),
    Column('position', Integer, nullable=False, server_default='0'),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
)

companies = Table(
    'companies',
    metadata,
    Column('company_id', String(36), primary_key=True),
    Column('name', Text, nullable=False),
    Column('email', String(255), nullable=False, unique=True),
    Column('is_active', Boolean, nullable=False, server_default='1'),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Index('idx_companies_created_at', 'created_at'),
)

# Current subscription of a company (exactly one row per company)
company_plan_state = Table(
    'company_plan_state',
    metadata,
    Column('company_id', String(36), ForeignKey('companies.company_id', ondelete='CASCADE'), primary_key=True),
    Column('tier', String(20), ForeignKey('plans.tier'), nullable=False),
    Column('quote_pending', Boolean, nullable=False, server_default='0'),
    Column('requested_tier', String(20), nullable=True),
    Column('quote_approved_at', DateTime(timezone=True), nullable=True),
    Column('approved_by', String(100), nullable=True),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    Index('idx_company_plan_state_tier', 'tier'),
    Index('idx_company_plan_state_quote_pending', 'quote_pending'),
)

# Append-only log of plan changes
plan_history = Table(
    'plan_history',
    metadata,
    Column('id', Integer, primary_key=True, autoincrement=True),
    Column('company_id', String(36), ForeignKey('companies.company_id', ondelete='CASCADE'), nullable=False),
    Column('old_tier', String(20), nullable=True),
    Column('new_tier', String(20), nullable=False),
    Column('reason', Text, nullable=True),
    Column('changed_by', String(100), nullable=True),
    Column('created_at', DateTime(timezone=True), nullable=False),
    Index('idx_plan_history_company_created', 'company_id', 'created_at'),
)

events = Table(
    'events',
    metadata,
    Column('event_id', String(36), primary_key=True),
    Column('company_id', String(36), ForeignKey('companies.company_id', ondelete='CASCADE'), nullable=False),
    Column('title', Text, nullable=False),
    Column('location', Text, nullable=True),
    Column('starts_at', DateTime(timezone=True), nullable=True),
    Column('created_at', DateTime(timezone=True), nullable=False),
    # Composite index for annual quota counting: (company_id, created_at)
    Index('idx_events_company_created', 'company_id', 'created_at'),
)

participants = Table(
    'participants',
    metadata,
    Column('participant_id', String(36), primary_key=True),
    Column('event_id', String(36), ForeignKey('events.event_id', ondelete='CASCADE'), nullable=False, index=True),
    Column('name', Text, nullable=False),
    Column('email', String(255), nullable=True),
    Column('role', String(20), nullable=False, server_default='passenger'),  # 'driver' | 'passenger'
    Column('created_at', DateTime(timezone=True), nullable=False),
    UniqueConstraint('event_id', 'email', name='uq_participants_event_email'),
)

vehicles = Table(
    'vehicles',
    metadata,
    Column('vehicle_id', String(36), primary_key=True),
    Column('event_id', String(36), ForeignKey('events.event_id', ondelete='CASCADE'), nullable=False, index=True),
    Column('driver_name', Text, nullable=False),
    Column('seats', Integer, nullable=False),
    Column('created_at', DateTime(timezone=True), nullable=False),
)
