# init_db.py - run once to create the data file and seed default categories (development helper)
from finance_api.core.config import settings
from finance_api.db.store import JsonStore
import logging, sys

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

logger.info("Initializing data file at %s ...", settings.DB_PATH)
try:
    store = JsonStore(settings.DB_PATH).load()
    counts = {name: len(records) for name, records in store.read().items()}
    logger.info("Done. %s", counts)
except (OSError, ValueError):
    logger.exception("Error initializing data file:")
    sys.exit(1)
