import enum
import threading
from dataclasses import dataclass, field
from typing import NamedTuple, Optional


class TaskKind(enum.Enum):
    INIT = "init"        # One-time initialization task
    SERVICE = "service"  # Long-running service

    @property
    def default_prefix(self) -> str:
        """Prefix of the generated name when the caller gives no alias."""
        return "init" if self is TaskKind.INIT else "app"


@dataclass(frozen=True)
class TaskSpec:
    """A task as requested by the caller, before it is registered."""
    command: str
    kind: TaskKind
    alias: Optional[str] = None


class TaskState(NamedTuple):
    alive: bool
    exit_code: int
    success: bool


@dataclass(eq=False)
class Task:
    """
    One managed unit of work.

    `name`, `command` and `kind` never change. The runtime triple `alive`,
    `exit_code` and `success` (plus `pid`) is only written by the runner that
    owns this task, and always under `_lock`; readers go through `snapshot()`.
    """
    name: str
    command: str
    kind: TaskKind
    alive: bool = False
    exit_code: int = 0
    success: bool = False
    pid: Optional[int] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def is_init(self) -> bool:
        return self.kind is TaskKind.INIT

    def mark_started(self, pid: int) -> None:
        with self._lock:
            self.pid = pid
            self.alive = True

    def mark_exited(self, exit_code: int) -> None:
        """Records the final exit code and clears `alive` in one step."""
        with self._lock:
            self.exit_code = exit_code
            if self.is_init:
                self.success = exit_code == 0
            self.alive = False

    def mark_launch_failed(self) -> None:
        with self._lock:
            self.exit_code = -1
            if self.is_init:
                self.success = False
            self.alive = False

    def snapshot(self) -> TaskState:
        with self._lock:
            return TaskState(self.alive, self.exit_code, self.success)

    def running_pid(self) -> Optional[int]:
        """The child's PID while it is alive, otherwise None."""
        with self._lock:
            return self.pid if self.alive else None
