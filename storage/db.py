# habits/storage/db.py
from sqlmodel import SQLModel, create_engine, Session

from core.settings import DB_PATH, BACKUP
from storage.backup import ensure_daily_backup

# Ensure SQLModel metadata is populated
import models.habit  # noqa: F401
import models.daily_record  # noqa: F401
from storage import migrations


_engine = create_engine(f"sqlite:///{DB_PATH.as_posix()}", echo=False)


def init_db(engine=None):
    actual_engine = engine or _engine
    if engine is None:
        DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(actual_engine)
    migrations.run_all(actual_engine)
    if engine is None and BACKUP.enabled:
        ensure_daily_backup(DB_PATH, BACKUP.directory, keep_days=BACKUP.keep_days)


def get_engine():
    return _engine


def get_session() -> Session:
    return Session(_engine)
