import time
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session
from app.core_settings import get_settings
from app.domain.models import Base
from shared.core import get_logger

logger = get_logger(__name__)

settings = get_settings()
engine = create_engine(settings.database_url, echo=False, future=True, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_models(bind: Engine = engine):
    Base.metadata.create_all(bind)

def wait_for_database(bind: Engine = engine, max_attempts: int = 30, delay: float = 1.0) -> int:
    """Block until the database accepts connections; return the attempt count."""
    for attempt in range(1, max_attempts + 1):
        try:
            with bind.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info(f"Database ready after {attempt} attempt(s)")
            return attempt
        except OperationalError as e:
            logger.warning(f"Database not ready (attempt {attempt}): {e}")
            if attempt < max_attempts:
                time.sleep(delay)
    raise RuntimeError(f"Database not ready after {max_attempts} attempts")
