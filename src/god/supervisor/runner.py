"""
Task runners.

Each runner drives one task through start, wait and exit, and records the
outcome on the task. Failures of the task itself (it cannot be launched, it
exits non-zero, it is killed) are never raised; they end up in the task's
recorded state and in the log.
"""
import logging
import subprocess
import threading
from typing import Callable, List, Optional, Tuple

from god.supervisor import process_utils
from god.supervisor.task import Task

log = logging.getLogger(__name__)

Spawner = Callable[[Task], subprocess.Popen]


def _launch(
    task: Task, spawn: Spawner, logger: logging.Logger, label: str
) -> Optional[Tuple[subprocess.Popen, List[threading.Thread]]]:
    logger.info(f"[{task.name}] Starting {label}")
    try:
        process = spawn(task)
    except (OSError, ValueError) as e:
        logger.error(f"[{task.name}] Failed to start {label}: {e}")
        task.mark_launch_failed()
        return None

    readers = process_utils.attach_output(process, task.name)
    task.mark_started(process.pid)
    logger.info(f"[{task.name}] {label.capitalize()} started with PID {process.pid}")
    return process, readers


def _wait(
    task: Task, process: subprocess.Popen, readers: List[threading.Thread],
    logger: logging.Logger, drain_timeout: float,
) -> int:
    """Blocks until the process exits and returns the exit code to record."""
    try:
        returncode = process.wait()
    except OSError as e:
        logger.error(f"[{task.name}] Could not wait for process: {e}")
        return -1
    process_utils.drain_output(readers, drain_timeout)
    return process_utils.interpret_exit_status(returncode)


def run_init_task(
    task: Task,
    spawn: Spawner = process_utils.spawn_process,
    logger: Optional[logging.Logger] = None,
    drain_timeout: float = 5,
) -> None:
    """
    Runs a one-time initialization task to completion.

    Returns once the task has reached a terminal state; `task.success` tells
    whether it exited with code 0.
    """
    logger = logger or log
    launched = _launch(task, spawn, logger, "init task")
    if launched is None:
        return

    exit_code = _wait(task, *launched, logger, drain_timeout)
    task.mark_exited(exit_code)
    if exit_code == 0:
        logger.info(f"[{task.name}] Init task completed successfully")
    else:
        logger.warning(f"[{task.name}] Init task failed with exit code {exit_code}")


def run_service_task(
    task: Task,
    cancel_event: threading.Event,
    spawn: Spawner = process_utils.spawn_process,
    logger: Optional[logging.Logger] = None,
    drain_timeout: float = 5,
) -> None:
    """
    Runs a long-running service until its process exits. It is never restarted.

    Meant to be the target of a dedicated thread. `cancel_event` is only
    consulted to tell a shutdown-driven exit apart from an unexpected one.
    """
    logger = logger or log
    launched = _launch(task, spawn, logger, "service")
    if launched is None:
        return

    exit_code = _wait(task, *launched, logger, drain_timeout)
    task.mark_exited(exit_code)
    if cancel_event.is_set():
        logger.info(f"[{task.name}] Service stopped during shutdown (exit code {exit_code})")
    elif exit_code == 0:
        logger.warning(f"[{task.name}] Service exited on its own (exit code 0)")
    else:
        logger.error(f"[{task.name}] Service exited with error (exit code {exit_code})")
