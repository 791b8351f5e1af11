# acme_hr/scripts/load_data.py
import logging
import sys
from pathlib import Path

from acme_hr.config import settings
from acme_hr.db import RecordStore
from acme_hr.main import bootstrap

# Logging
logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
logger = logging.getLogger("load_data")


def main(argv=None):
    """
    Run the CSV loader once without starting the HTTP server.
    Usage: python -m acme_hr.scripts.load_data [DATA_FOLDER]
    """
    argv = sys.argv[1:] if argv is None else argv
    data_folder = Path(argv[0]) if argv else Path(settings.DATA_FOLDER)
    if not data_folder.is_dir():
        logger.error(f"Data folder {data_folder} does not exist.")
        return 1

    store = RecordStore(settings.DATABASE_URL)
    try:
        summary = bootstrap(store, str(data_folder))
    except Exception as e:
        logger.exception(f"Data load failed: {e}")
        return 1
    finally:
        store.dispose()

    if summary.skipped:
        logger.warning(f"Finished with {summary.skipped} skipped row(s); check the warnings above.")
    else:
        logger.info("Finished without skipped rows.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
