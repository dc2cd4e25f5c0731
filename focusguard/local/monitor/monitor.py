import time
import logging
import threading
from typing import Callable, Optional, Sequence

from focusguard import settings
from focusguard.local.automation import AutomationBridge
from focusguard.local.errors import AutomationError
from focusguard.local.monitor.process_utils import is_app_running
from focusguard.local.monitor.state import MonitoredApp, MonitorPhase, MonitorState

log = logging.getLogger(__name__)

NOTIFICATION_TITLE = "FocusGuard"


def default_apps() -> Sequence[MonitoredApp]:
    return tuple(MonitoredApp(*entry) for entry in settings.MONITORED_APPLICATIONS)


class ProcessMonitor:
    """
    Keeps the monitored applications running.

    Every tick checks each application in declaration order, launching the
    ones that are missing. An application that stays missing for
    `fail_threshold` consecutive ticks halts the monitor for the rest of the
    process lifetime; every `pause_after` ticks the monitor rests for
    `pause_seconds`.
    """

    def __init__(
        self,
        bridge: AutomationBridge,
        apps: Optional[Sequence[MonitoredApp]] = None,
        detector: Callable[[str], bool] = is_app_running,
        sleep: Callable[[float], None] = time.sleep,
        halt: Optional[Callable[[], None]] = None,
        stop_event: Optional[threading.Event] = None,
        tick_seconds: float = settings.MONITOR_TICK_SECONDS,
        fail_threshold: int = settings.MONITOR_FAIL_THRESHOLD,
        pause_after: int = settings.MONITOR_PAUSE_AFTER_ITERATIONS,
        pause_seconds: float = settings.MONITOR_PAUSE_SECONDS,
    ) -> None:
        self.bridge = bridge
        self.apps = tuple(apps) if apps is not None else default_apps()
        self.detector = detector
        self._sleep = sleep
        self.stop_event = stop_event or threading.Event()
        # Without an explicit halt the indefinite pause waits on the stop event,
        # which nothing sets in production.
        self._halt = halt or self.stop_event.wait
        self.tick_seconds = tick_seconds
        self.fail_threshold = fail_threshold
        self.pause_after = pause_after
        self.pause_seconds = pause_seconds
        self.state = MonitorState.fresh(self.apps)

    def _launch(self, app: MonitoredApp) -> None:
        try:
            if app.launch_method == "activate":
                self.bridge.activate_application(app.name)
            elif app.launch_method == "terminal":
                self.bridge.run_in_terminal(app.launch_command or f"open -a '{app.name}'")
            else:
                raise ValueError(f"Unknown launch method '{app.launch_method}' for {app.name}.")
        except AutomationError as e:
            # Indistinguishable from "not up yet"; the fail counter already moved.
            log.debug(f"Launch attempt for {app.name} failed: {e}")

    def check_app(self, app: MonitoredApp) -> bool:
        """Checks one application, launching it if missing. Returns True if it was running."""
        if self.detector(app.name):
            if self.state.fail_counts.get(app.name):
                log.info(f"{app.name} is running again.")
            self.state.record_success(app.name)
            return True

        failures = self.state.record_failure(app.name)
        log.warning(f"{app.name} is not running (consecutive failures: {failures}). Launching...")
        self._launch(app)
        return False

    def tick(self) -> MonitorPhase:
        """
        Runs one monitoring iteration and returns the phase it ended in.
        The cyclic pause sleeps inside this call; the indefinite pause does not.
        """
        all_running = True
        for app in self.apps:
            all_running = self.check_app(app) and all_running

        for app in self.apps:
            failures = self.state.fail_counts[app.name]
            if failures >= self.fail_threshold:
                self.state.paused_app = app.name
                log.critical(f"{app.name} failed to start {failures} times in a row. Monitoring paused until restart.")
                self.bridge.notify(NOTIFICATION_TITLE, f"{app.name} could not be started. Monitoring is paused.")
                return MonitorPhase.PAUSED_INDEFINITE

        self.state.iteration_counter += 1
        if self.state.iteration_counter >= self.pause_after:
            log.info(f"Reached {self.state.iteration_counter} iterations. Pausing for {self.pause_seconds}s.")
            self.bridge.notify(NOTIFICATION_TITLE, f"Monitoring paused for {self.pause_seconds:g} seconds.")
            self._sleep(self.pause_seconds)
            self.state.iteration_counter = 0
            return MonitorPhase.PAUSED_CYCLIC

        return MonitorPhase.RUNNING if all_running else MonitorPhase.LAUNCHING

    def run(self) -> MonitorPhase:
        """
        Ticks until the stop event is set or an application exhausts its
        failures, in which case the monitor halts for good.
        """
        names = ", ".join(app.name for app in self.apps)
        log.info(f"Process monitor started. Watching: {names}.")
        phase = MonitorPhase.RUNNING
        while not self.stop_event.is_set():
            phase = self.tick()
            if phase is MonitorPhase.PAUSED_INDEFINITE:
                log.critical(f"Monitor halted after repeated failures of {self.state.paused_app}.")
                self._halt()
                return phase
            self._sleep(self.tick_seconds)
        log.info("Process monitor stopped.")
        return phase
