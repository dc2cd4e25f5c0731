import psutil
import logging

log = logging.getLogger(__name__)


def is_app_running(name: str) -> bool:
    """
    True if any process is named exactly `name`. Exact matching keeps
    'Focus' from matching 'FocusMe'. psutil errors count as not running.
    """
    try:
        for proc in psutil.process_iter(['name']):
            if proc.info.get('name') == name:
                return True
    except psutil.Error as e:
        log.debug(f"Process scan for '{name}' failed: {e}")
    return False
