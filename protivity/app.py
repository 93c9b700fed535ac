"""Process wiring for ProTIvity.

Builds the one ``Store`` a process should use, with its persistence and
notification dependencies injected, from environment configuration.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

from protivity.database.gateway import PersistenceGateway
from protivity.models.constants import AUTOSAVE_DEBOUNCE_SECONDS
from protivity.store.notifications import ChangeNotifier
from protivity.store.store import Store

load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging from `PROTIVITY_LOG_LEVEL` (default INFO)."""
    level_name = (level or os.getenv("PROTIVITY_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_autosave_delay() -> float:
    raw = os.getenv("PROTIVITY_AUTOSAVE_DELAY_SEC")
    if not raw:
        return AUTOSAVE_DEBOUNCE_SECONDS
    try:
        delay = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid PROTIVITY_AUTOSAVE_DELAY_SEC={raw!r}")
        return AUTOSAVE_DEBOUNCE_SECONDS
    return max(delay, 0.0)


def build_store(database_url: Optional[str] = None, notifier: Optional[ChangeNotifier] = None) -> Store:
    """Create, load and return the process store.

    Call ``store.close()`` before exit so a pending autosave is not lost.
    """
    gateway = PersistenceGateway.from_url(database_url)
    store = Store(gateway, notifier=notifier, autosave_delay=get_autosave_delay())
    store.load()
    for key, error in store.load_errors.items():
        logger.warning(f"Started with empty {key}: {str(error)}")
    return store
