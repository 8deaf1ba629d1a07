"""Database configuration and base models"""

import os

import redis
from sqlalchemy import create_engine
from sqlmodel import Session, SQLModel

from workshop_registry.config import config

# Database URL from config
DATABASE_URL = config["database_url"]

if not DATABASE_URL:
    raise ValueError(
        "DATABASE_URL environment variable is not set. "
        "Set DATABASE_URL in the deployment environment or local .env file."
    )

# SQLite connections are shared across the threadpool FastAPI runs sync work in
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    echo=os.getenv("DEBUG", "false").lower() == "true",
    connect_args=connect_args,
)

REDIS_URL = config["redis_url"]

# Redis client (singleton); connections are opened lazily on first command
redis_client = redis.from_url(
    REDIS_URL,
    decode_responses=True,
    max_connections=20,
    socket_connect_timeout=5,
    socket_keepalive=True,
    retry_on_timeout=True,
)


def init_db(bind=None) -> None:
    """Create all tables that do not exist yet"""
    # Import models so their tables are registered on the metadata
    import workshop_registry.models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_db():
    """Get database session"""
    with Session(engine) as session:
        yield session


def get_redis():
    """Get Redis client"""
    return redis_client
