import logging
import pathlib
import shutil
import time

from templify.core.config import settings
from templify.services.pdf_converter import WORK_DIR_PREFIX

logger = logging.getLogger(__name__)


def cleanup_work_dir(work_dir: str | pathlib.Path | None = None) -> int:
    """Remove conversion folders older than cleanup_ttl left behind in work_dir.

    Returns the number of folders removed.
    """
    root = pathlib.Path(work_dir or settings.conversion_work_dir)
    removed = 0
    for item in root.glob(f"{WORK_DIR_PREFIX}*"):
        try:
            if time.time() - item.stat().st_mtime > settings.cleanup_ttl:
                logger.info("Attempting to remove old conversion folder: %s", item)
                shutil.rmtree(item, ignore_errors=True)
                removed += 1
        except FileNotFoundError:
            logger.warning("Item not found during cleanup (possibly already deleted): %s", item)
        except OSError as e:
            logger.error("Error removing item %s: %s", item, e)
    return removed
