# create_tables.py - run once to create missing tables (development helper)
import logging
import sys

from bookkeeping.core.config import settings
from bookkeeping.core.logger import setup_logging
from bookkeeping.db import models  # noqa: F401  registers the tables on Base
from bookkeeping.db.base import Base
from bookkeeping.db.session import build_engine

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

logger.info("Creating tables in the database (if not exist)...")
try:
    Base.metadata.create_all(bind=build_engine(settings.DATABASE_URL))
    logger.info("Done.")
except Exception:
    logger.exception("Error creating tables:")
    sys.exit(1)
