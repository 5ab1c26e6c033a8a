from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from storefront.config import DATABASE_URL

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def get_db():
    """Request-scoped session; always closed, even when the handler raises."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
