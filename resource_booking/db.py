import os
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from resource_booking.config import settings


SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL
connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_database():
    # Register the tables on Base.metadata before creating them
    from resource_booking.models import booking, resource  # noqa: F401

    database = make_url(SQLALCHEMY_DATABASE_URL).database
    if SQLALCHEMY_DATABASE_URL.startswith("sqlite") and database:
        directory = os.path.dirname(database)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
    Base.metadata.create_all(bind=engine)


def get_db():
    """Provide a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
