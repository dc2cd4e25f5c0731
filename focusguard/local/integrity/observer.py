import logging
import threading
from pathlib import Path
from typing import Iterable, Optional, Set
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileDeletedEvent, FileMovedEvent, FileModifiedEvent

log = logging.getLogger(__name__)

TAMPER_EVENT_TYPES = (FileDeletedEvent.event_type, FileMovedEvent.event_type, FileModifiedEvent.event_type)


class ArtifactChangeHandler(FileSystemEventHandler):
    """Sets the wake event when a managed path is deleted, moved away or modified."""

    def __init__(self, watched_paths: Iterable[Path], wake_event: threading.Event):
        super().__init__()
        # FSEvents reports resolved paths (/private/var rather than /var)
        self.watched: Set[str] = set()
        for path in watched_paths:
            self.watched.update({str(path), str(path.resolve())})
        self.wake_event = wake_event

    def on_any_event(self, event) -> None:
        if event.is_directory or event.event_type not in TAMPER_EVENT_TYPES:
            return
        if event.src_path not in self.watched:
            return
        log.debug(f"Watchdog event: {event.event_type} on {event.src_path}")
        self.wake_event.set()


def start_observer(directories: Iterable[Path], watched_paths: Iterable[Path], wake_event: threading.Event) -> Optional[Observer]:
    """
    Schedules a non-recursive observer on every existing directory.
    Returns None if the observer cannot start; the periodic pass still runs.
    """
    handler = ArtifactChangeHandler(watched_paths, wake_event)
    observer = Observer()
    try:
        for directory in directories:
            if directory.is_dir():
                observer.schedule(handler, str(directory), recursive=False)
        observer.start()
    except OSError as e:
        log.error(f"Filesystem observer could not start, relying on periodic checks: {e}")
        return None
    log.info("Filesystem observer started.")
    return observer
