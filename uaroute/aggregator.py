# uaroute/aggregator.py

from datetime import datetime, timedelta
from typing import Optional, Sequence
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from uaroute.database import SessionLocal
from uaroute.stats import redirect_stats
from uaroute.models import StatsGlobal, StatsByRoute, StatsByOsClass
import logging

logger = logging.getLogger(__name__)

COUNT_COLUMNS = {
    StatsGlobal: ("redirects", "pages", "not_found", "errors"),
    StatsByRoute: ("redirects", "pages"),
    StatsByOsClass: ("redirects", "pages"),
}


def get_minute_timestamp() -> datetime:
    """Get current time truncated to the minute"""
    now = datetime.utcnow()
    return now.replace(second=0, microsecond=0)


def run_aggregation(minute: Optional[datetime] = None) -> None:
    """
    Called every minute by scheduler.
    Collects redirect counts and writes them to the database.
    """
    if minute is None:
        minute = get_minute_timestamp() - timedelta(minutes=1)  # Stats for previous minute

    stats = redirect_stats.get_and_reset_minute_stats()

    db = SessionLocal()
    try:
        upsert(db, StatsGlobal, {"minute": minute, **stats["global"]}, ("minute",))

        for (zone, route), counts in stats["by_route"].items():
            upsert(
                db,
                StatsByRoute,
                {"minute": minute, "zone": zone, "route": route, **counts},
                ("minute", "zone", "route"),
            )

        for os_class, counts in stats["by_os_class"].items():
            upsert(db, StatsByOsClass, {"minute": minute, "os_class": os_class, **counts}, ("minute", "os_class"))

        db.commit()
        logger.info(f"Aggregation complete for {minute}: {stats['global']['redirects']} redirects, {stats['global']['pages']} pages, {stats['global']['not_found']} not found")

    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Aggregation failed: {e}")
    finally:
        db.close()


def dialect_name(db: DBSession) -> str:
    return db.get_bind().dialect.name


def upsert(db: DBSession, model, values: dict, key_columns: Sequence[str]) -> None:
    """
    Insert a stats row, or add the counts to the row already stored for
    the same key. A minute can be flushed more than once (shutdown flush,
    then the next process's flush of the same minute).
    """
    columns = COUNT_COLUMNS[model]
    dialect = dialect_name(db)

    if dialect == "mysql":
        stmt = mysql_insert(model).values(**values)
        stmt = stmt.on_duplicate_key_update(
            **{column: getattr(model, column) + stmt.inserted[column] for column in columns}
        )
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(key_columns),
            set_={column: getattr(model, column) + stmt.excluded[column] for column in columns},
        )
    else:
        existing = db.get(model, tuple(values[column] for column in key_columns))
        if existing is None:
            db.add(model(**values))
        else:
            for column in columns:
                setattr(existing, column, (getattr(existing, column) or 0) + values[column])
        return

    db.execute(stmt)
