import logging
from sqlalchemy import inspect, text
from eonchat.db.session import engine, Base
from eonchat.utils.logger import setup_logging

# Import all models before create_all
from eonchat.models import user, message, friend_request, notification, otp  # noqa: F401

logger = logging.getLogger(__name__)


def create_missing_tables():
    logger.info("Creating missing tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created successfully (if missing)")


def add_missing_columns():
    """Add model columns that an older database does not have yet. Returns the columns added."""
    added = []
    inspector = inspect(engine)
    existing_tables = inspector.get_table_names()
    with engine.connect() as conn:
        for table_name, model_table in Base.metadata.tables.items():
            if table_name not in existing_tables:
                logger.warning(f"Table {table_name} not found in DB, creating it...")
                model_table.create(bind=engine, checkfirst=True)
                continue

            existing_cols = [col["name"] for col in inspector.get_columns(table_name)]
            for col_name, col in model_table.columns.items():
                if col_name in existing_cols:
                    continue
                sql = f'ALTER TABLE "{table_name}" ADD COLUMN "{col_name}" {col.type.compile(engine.dialect)}'
                logger.info(f"Adding column {table_name}.{col_name}")
                try:
                    conn.execute(text(sql))
                    conn.commit()
                    added.append(f"{table_name}.{col_name}")
                except Exception:
                    conn.rollback()
                    logger.exception(f"Error adding column {table_name}.{col_name}")
                    raise
    return added


if __name__ == "__main__":
    setup_logging()
    logger.info("Syncing database...")
    create_missing_tables()
    add_missing_columns()
    logger.info("Database sync complete")
