import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from storefront.config import settings

DATABASE_URL = settings.DATABASE_URL

# batch fan-out issues requests from worker threads
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def init_db(reset: bool = False):
    """
    Initialize DB schema.

    Behavior:
      - If `reset` is passed or RESET_DB env var is set to 1/true/yes, drop & recreate tables.
      - Otherwise, leave existing tables in place.

    Ensure all model modules are imported so metadata is populated.
    """
    import storefront.models.document  # noqa: F401

    env_reset = os.environ.get("RESET_DB", "false").lower() in ("1", "true", "yes")
    if reset or env_reset:
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
