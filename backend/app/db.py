from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from pathlib import Path
import logging

# Share metadata with the model definitions (app.models.base)
from app.models.base import Base
from app.config import DATABASE_URL

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = DATABASE_URL
_is_sqlite = SQLALCHEMY_DATABASE_URL.startswith("sqlite")

if _is_sqlite and SQLALCHEMY_DATABASE_URL.startswith("sqlite:///"):
    # create the directory for file-backed SQLite
    Path(SQLALCHEMY_DATABASE_URL[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)

_connect_args = {"check_same_thread": False} if _is_sqlite else {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=_connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    bind = bind or engine
    # import every model module so its table is registered on the metadata
    import app.models.work_order  # noqa: F401
    import app.models.work_order_photo  # noqa: F401
    import app.models.route  # noqa: F401
    Base.metadata.create_all(bind=bind)

    # Minimal SQLite migration for databases created before the archive column existed
    if bind.dialect.name == "sqlite":
        try:
            with bind.begin() as conn:
                cols = conn.exec_driver_sql("PRAGMA table_info(work_order_photos)").fetchall()
                names = {row[1] for row in cols}
                if "original_file_path" not in names:
                    conn.exec_driver_sql("ALTER TABLE work_order_photos ADD COLUMN original_file_path VARCHAR(255)")
        except SQLAlchemyError as e:
            # startup continues; the new column is only needed for archive paths
            logger.warning(f"SQLite column migration skipped: {e}")


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
