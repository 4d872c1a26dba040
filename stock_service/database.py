from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
import os

# Get DB connection string from environment variables.
# The SQLite fallback is meant for local development only.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./stock.db")

# SQLite connections are shared across FastAPI's worker threads.
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Create the SQLAlchemy engine.
engine = create_engine(DATABASE_URL, connect_args=connect_args)

# Create a configured "Session" class.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models.
Base = declarative_base()

def get_db():
    """Dependency to get a DB session for a request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        # Ensure the session is closed after use.
        db.close()
