# checkout/data/database.py
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from checkout.domain.errors import PersistenceError
from checkout.utils.settings import DATABASE_URL
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

engine = create_engine(DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Jedna transakcja na operacje biznesowa.
    Zagniezdzone wywolania dolaczaja do zewnetrznej - commit/rollback
    robi tylko najbardziej zewnetrzny zakres.
    """
    depth = db.info.get("uow_depth", 0)
    db.info["uow_depth"] = depth + 1
    try:
        yield db
        if depth == 0:
            db.commit()
    except SQLAlchemyError as e:
        if depth == 0:
            db.rollback()
            logger.error(f"Transaction rolled back: {e}")
            raise PersistenceError("Blad zapisu do bazy danych") from e
        raise
    except Exception:
        if depth == 0:
            db.rollback()
        raise
    finally:
        db.info["uow_depth"] = depth
