import time
import logging
import threading
import functools
from typing import List, Optional

from god.errors import SupervisorError
from god.supervisor import runner, shutdown
from god.supervisor.health import HealthReport, build_health_report
from god.supervisor.process_utils import spawn_process
from god.supervisor.task import Task, TaskKind, TaskSpec

log = logging.getLogger(__name__)


class _WaitGroup:
    """Counts running executions and lets callers block until none is left."""

    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    def add(self) -> None:
        with self._cond:
            self._count += 1

    def done(self) -> None:
        with self._cond:
            self._count -= 1
            if self._count <= 0:
                self._cond.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._count <= 0, timeout)


class TaskManager:
    """
    Owns the task set and runs it in two phases: every init task first, then,
    only if all of them succeeded, every service concurrently.

    Tasks are registered once before `start()` and never removed. Each task's
    runtime state is written only by the runner executing it, so the manager
    itself needs no lock besides the per-task ones and the init gate.
    """

    def __init__(
        self,
        init_concurrent: bool = False,
        forward_signals: bool = False,
        graceful_timeout: float = 10,
        drain_timeout: float = 5,
        shell: str = "sh",
        logger: Optional[logging.Logger] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        """
        :param init_concurrent: Run init tasks in parallel instead of one after another.
        :param forward_signals: On shutdown, terminate the children instead of only waiting for them.
        :param graceful_timeout: Seconds between SIGTERM and SIGKILL when forwarding signals.
        :param drain_timeout: Seconds to wait for a task's remaining output after it exited.
        :param shell: Shell used to run command strings.
        :param logger: Diagnostics sink, passed down to the runners.
        :param cancel_event: Cancellation token shared with whoever requests the shutdown,
            e.g. a signal handler. Once set, no further task is launched.
        """
        self.tasks: List[Task] = []
        self.init_concurrent = init_concurrent
        self.forward_signals = forward_signals
        self.graceful_timeout = graceful_timeout
        self.drain_timeout = drain_timeout
        self.log = logger or log

        self.init_done = threading.Event()
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self._services = _WaitGroup()
        self._spawn = functools.partial(spawn_process, shell=shell)
        self._started = False

    #* --- Registration ---
    def add_task(self, name: str, command: str, kind: TaskKind) -> Optional[Task]:
        """
        Registers a task. Empty commands are skipped.

        :return: The registered task, or None if it was skipped.
        """
        if self._started:
            raise SupervisorError("Tasks cannot be added after the manager has started.")
        command = command.strip()
        if not command:
            self.log.warning(f"[{name}] Empty command, skipping task.")
            return None
        task = Task(name=name, command=command, kind=kind)
        self.tasks.append(task)
        self.log.debug(f"Added {kind.value} task: {name} -> {command}")
        return task

    def add_spec(self, spec: TaskSpec, index: int) -> Optional[Task]:
        """
        Registers a caller-supplied task, generating a name when it has no alias.

        :param spec: The requested task.
        :param index: 1-based position of the task among those of the same kind.
        """
        name = spec.alias or f"{spec.kind.default_prefix}{index}"
        return self.add_task(name, spec.command, spec.kind)

    #* --- Lifecycle ---
    @property
    def init_complete(self) -> bool:
        """Whether the init phase has concluded, successfully or not. Never blocks."""
        return self.init_done.is_set()

    def start(self) -> bool:
        """
        Runs the init phase, then launches the services in the background.

        Blocks for the whole init phase. Returns as soon as the services are
        launched. If the cancellation token is set before the services are
        launched, no further task is started.

        :return: True if the services were launched, False if the init phase failed
            or a shutdown was requested during it.
        """
        if self._started:
            raise SupervisorError("The manager can only be started once.")
        self._started = True

        init_tasks = [t for t in self.tasks if t.kind is TaskKind.INIT]
        service_tasks = [t for t in self.tasks if t.kind is TaskKind.SERVICE]

        try:
            init_ok = self._run_init_phase(init_tasks)
        finally:
            self.init_done.set()

        if not init_ok:
            self.log.error("Some initialization tasks failed, not starting services")
            return False

        if self.cancel_event.is_set():
            self.log.warning("Shutdown requested during initialization, not starting services")
            return False

        if service_tasks:
            self.log.info(f"Starting {len(service_tasks)} service tasks...")
        for task in service_tasks:
            if self.cancel_event.is_set():
                self.log.warning(f"[{task.name}] Not started, shutdown requested")
                continue
            self._services.add()
            threading.Thread(
                target=self._supervise_service,
                args=(task,),
                daemon=True,
                name=f"service-{task.name}",
            ).start()
        return True

    def _run_init_phase(self, init_tasks: List[Task]) -> bool:
        if not init_tasks:
            return True

        start_time = time.monotonic()
        self.log.info(f"Starting {len(init_tasks)} initialization tasks...")
        if self.init_concurrent:
            self._run_init_concurrently(init_tasks)
        else:
            self._run_init_sequentially(init_tasks)

        failed = [t for t in init_tasks if not t.snapshot().success]
        for task in failed:
            self.log.error(f"[{task.name}] Init task failed with exit code {task.snapshot().exit_code}")
        if failed:
            return False

        self.log.info(f"All initialization tasks completed successfully in {time.monotonic() - start_time:.2f} seconds.")
        return True

    def _run_init_sequentially(self, init_tasks: List[Task]) -> None:
        for position, task in enumerate(init_tasks, start=1):
            if self.cancel_event.is_set():
                for skipped in init_tasks[position - 1:]:
                    self.log.warning(f"[{skipped.name}] Skipped, shutdown requested")
                    skipped.mark_launch_failed()
                return
            self.log.debug(f"Running init task {position}/{len(init_tasks)}: {task.name}")
            self._run_init(task)
            if not task.snapshot().success:
                # Later tasks may depend on this one; they are recorded as never launched.
                for skipped in init_tasks[position:]:
                    self.log.warning(f"[{skipped.name}] Skipped because '{task.name}' failed")
                    skipped.mark_launch_failed()
                return

    def _run_init_concurrently(self, init_tasks: List[Task]) -> None:
        threads = [
            threading.Thread(target=self._run_init, args=(task,), daemon=True, name=f"init-{task.name}")
            for task in init_tasks
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    def _run_init(self, task: Task) -> None:
        try:
            runner.run_init_task(task, spawn=self._spawn, logger=self.log, drain_timeout=self.drain_timeout)
        except Exception:
            self.log.critical(f"[{task.name}] Unexpected error while running init task", exc_info=True)
            task.mark_launch_failed()

    def _supervise_service(self, task: Task) -> None:
        try:
            runner.run_service_task(
                task, self.cancel_event, spawn=self._spawn, logger=self.log, drain_timeout=self.drain_timeout,
            )
        except Exception:
            self.log.critical(f"[{task.name}] Unexpected error while supervising service", exc_info=True)
            if task.snapshot().alive:
                task.mark_exited(-1)
        finally:
            self._services.done()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Blocks until every launched service has exited.

        :param timeout: Maximum seconds to wait, or None to wait forever.
        :return: True if no service is running anymore, False on timeout.
        """
        return self._services.wait(timeout)

    def shutdown(self) -> None:
        """
        Signals cancellation and waits for all services to exit.

        By default the children are not touched: they are expected to exit on
        their own after the termination signal reached them. With
        `forward_signals`, their process trees are terminated first.
        """
        self.log.info("Shutting down all processes...")
        self.cancel_event.set()
        if self.forward_signals:
            shutdown.forward_termination(self.tasks, self.graceful_timeout)
        self.wait()
        self.log.info("All processes have finished.")

    #* --- Health ---
    def health_report(self) -> HealthReport:
        return build_health_report(self.tasks, self.init_done)
