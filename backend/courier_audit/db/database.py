"""
Database connection and session management.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
import os
from dotenv import load_dotenv

load_dotenv()

# Get settings from environment
database_url = os.getenv("DATABASE_URL", "sqlite:///./courier_audit.db")
history_max_records = int(os.getenv("HISTORY_MAX_RECORDS", "500"))
weight_max_records = int(os.getenv("WEIGHT_MAX_RECORDS", "10000"))
sql_echo = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

class Settings:
    database_url = database_url
    history_max_records = history_max_records
    weight_max_records = weight_max_records
    sql_echo = sql_echo

settings = Settings()

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
engine = create_engine(settings.database_url, echo=settings.sql_echo, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
