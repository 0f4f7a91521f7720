import threading
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from god.supervisor.task import Task

HEADER = "Health Check:"
NO_PROCESSES = "No processes configured"
INIT_IN_PROGRESS = "Initialization in progress..."


@dataclass(frozen=True)
class HealthReport:
    healthy: bool
    lines: List[str]

    @property
    def text(self) -> str:
        return "".join(f"{line}\n" for line in [HEADER, *self.lines])

    @property
    def status_code(self) -> int:
        return 200 if self.healthy else 500


def _task_line(task: Task) -> Tuple[bool, str]:
    state = task.snapshot()
    if task.is_init:
        ok = state.success
        status = "Completed" if ok else "Failed"
    else:
        ok = state.alive
        status = "Healthy" if ok else "Unhealthy"
    return ok, f"{task.name}: {status} (ExitCode={state.exit_code})"


def build_health_report(tasks: Sequence[Task], init_done: threading.Event) -> HealthReport:
    """
    Aggregates the current state of every task into a health report.

    Never blocks on task progress: the init gate is only tested, and each task
    lock is held just long enough to copy its state.

    - No tasks at all is reported as healthy.
    - While the init phase is still running the report is unhealthy.
    - Afterwards there is one line per task, in registration order; the report
      is healthy only if every service is alive and every init task succeeded.
    """
    if not tasks:
        return HealthReport(True, [NO_PROCESSES])

    if not init_done.is_set():
        return HealthReport(False, [INIT_IN_PROGRESS])

    healthy = True
    lines = []
    for task in tasks:
        ok, line = _task_line(task)
        healthy = healthy and ok
        lines.append(line)
    return HealthReport(healthy, lines)
