"""Block until the database in DATABASE_URL accepts connections (container start-up)."""
import logging
import os
import time

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError

from app.core.config import settings

logger = logging.getLogger("wait_for_db")
logging.basicConfig(level=logging.INFO, format="[wait_for_db] %(message)s")

timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
start = time.time()

logger.info("Waiting for %s (timeout=%ss)", engine.url.render_as_string(hide_password=True), timeout_s)
while True:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database is ready.")
        break
    except OperationalError as e:
        if time.time() - start > timeout_s:
            logger.error("Timed out waiting for DB. Last error: %s", e)
            raise
        time.sleep(1)
engine.dispose()
