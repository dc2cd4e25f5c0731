import enum
from dataclasses import dataclass, field
from typing import Dict, Iterable, NamedTuple, Optional


class MonitoredApp(NamedTuple):
    name: str
    launch_method: str  # 'activate' or 'terminal'
    launch_command: Optional[str] = None


class MonitorPhase(enum.Enum):
    RUNNING = "running"
    LAUNCHING = "launching"
    PAUSED_CYCLIC = "paused-cyclic"
    PAUSED_INDEFINITE = "paused-indefinite"


@dataclass
class MonitorState:
    """
    Counters owned by one ProcessMonitor loop. Never persisted, so every
    process start begins from zero.
    """
    iteration_counter: int = 0
    fail_counts: Dict[str, int] = field(default_factory=dict)
    paused_app: Optional[str] = None

    @classmethod
    def fresh(cls, apps: Iterable[MonitoredApp]) -> "MonitorState":
        return cls(fail_counts={app.name: 0 for app in apps})

    def record_failure(self, app_name: str) -> int:
        self.fail_counts[app_name] = self.fail_counts.get(app_name, 0) + 1
        return self.fail_counts[app_name]

    def record_success(self, app_name: str) -> None:
        self.fail_counts[app_name] = 0
