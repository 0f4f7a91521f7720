import psutil
import logging
from typing import Iterable, List, Set

from god.supervisor.task import Task

log = logging.getLogger(__name__)


def identify_processes_to_stop(tasks: Iterable[Task]) -> Set[psutil.Process]:
    """
    Collects the process of every alive task together with all its descendants.

    :param tasks: The tasks managed by the supervisor.
    :return: A set of psutil.Process objects to be stopped.
    """
    parent_procs: Set[psutil.Process] = set()
    for task in tasks:
        pid = task.running_pid()
        if pid is None:
            continue
        try:
            parent_procs.add(psutil.Process(pid))
        except psutil.NoSuchProcess:
            log.debug(f"[{task.name}] Process {pid} already gone.")

    all_procs_to_stop: Set[psutil.Process] = set(parent_procs)
    for proc in parent_procs:
        try:
            all_procs_to_stop.update(proc.children(recursive=True))
        except psutil.NoSuchProcess:
            log.warning(f"Process {proc.pid} no longer exists, skipping children retrieval.")
            continue

    return all_procs_to_stop


def _terminate_processes(processes: Iterable[psutil.Process]) -> None:
    """Sends SIGTERM to all processes."""
    for proc in processes:
        try:
            log.debug(f"Sending SIGTERM to {proc.name()} (PID {proc.pid})")
            proc.terminate()
        except psutil.NoSuchProcess:
            log.debug(f"Process {proc.pid} no longer exists, skipping termination.")
            continue


def _forceful_kill(processes: List[psutil.Process]) -> None:
    """Forcefully kills processes that didn't terminate gracefully."""
    if not processes:
        return

    log.warning(f"{len(processes)} processes did not terminate gracefully. Forcing shutdown...")
    for proc in processes:
        try:
            log.warning(f"Killing stubborn process {proc.name()} (PID {proc.pid}).")
            proc.kill()
        except psutil.NoSuchProcess:
            log.debug(f"Process {proc.pid} no longer exists, skipping forceful kill.")
            continue


def forward_termination(tasks: Iterable[Task], timeout: float) -> None:
    """
    Terminates the process trees of all alive tasks, killing what is left after `timeout` seconds.

    :param tasks: The tasks managed by the supervisor.
    :param timeout: Seconds to wait after SIGTERM before sending SIGKILL.
    """
    processes = identify_processes_to_stop(tasks)
    if not processes:
        log.info("No running task processes found to stop.")
        return

    log.info(f"Forwarding termination to {len(processes)} processes...")
    _terminate_processes(processes)

    procs_list = list(processes)
    try:
        _, alive = psutil.wait_procs(procs_list, timeout=timeout)
    except psutil.NoSuchProcess:
        alive = []

    _forceful_kill(alive)
