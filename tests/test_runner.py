"""
Tests for the init and service task runners.

The runners are exercised against real, short-lived `sh -c` children.
"""

import os
import signal
import threading

from god.supervisor.runner import run_init_task, run_service_task
from god.supervisor.task import Task, TaskKind, TaskState


def _failing_spawn(task):
    raise FileNotFoundError(2, "No such file or directory", task.command)


class TestInitRunner:
    """Test the init task runner."""

    def test_successful_task(self):
        task = Task(name="init1", command="exit 0", kind=TaskKind.INIT)
        run_init_task(task)
        assert task.snapshot() == TaskState(alive=False, exit_code=0, success=True)

    def test_exit_code_is_recorded(self):
        task = Task(name="init1", command="exit 3", kind=TaskKind.INIT)
        run_init_task(task)
        assert task.snapshot() == TaskState(alive=False, exit_code=3, success=False)

    def test_launch_failure_is_recorded_not_raised(self):
        task = Task(name="init1", command="missing-binary", kind=TaskKind.INIT)
        run_init_task(task, spawn=_failing_spawn)
        assert task.snapshot() == TaskState(alive=False, exit_code=-1, success=False)
        assert task.pid is None

    def test_signal_termination_records_minus_one(self):
        task = Task(name="init1", command="kill -9 $$", kind=TaskKind.INIT)
        run_init_task(task)
        assert task.snapshot() == TaskState(alive=False, exit_code=-1, success=False)

    def test_output_is_prefixed(self, capsys):
        task = Task(name="hello", command="echo world", kind=TaskKind.INIT)
        run_init_task(task, drain_timeout=5)
        assert "[hello] world" in capsys.readouterr().out


class TestServiceRunner:
    """Test the service task runner."""

    def test_exit_is_recorded_without_success(self):
        task = Task(name="app1", command="exit 5", kind=TaskKind.SERVICE)
        run_service_task(task, threading.Event())
        assert task.snapshot() == TaskState(alive=False, exit_code=5, success=False)

    def test_launch_failure(self):
        task = Task(name="app1", command="missing-binary", kind=TaskKind.SERVICE)
        run_service_task(task, threading.Event(), spawn=_failing_spawn)
        assert task.snapshot() == TaskState(alive=False, exit_code=-1, success=False)

    def test_alive_while_running(self, wait_until):
        task = Task(name="app1", command="exec sleep 30", kind=TaskKind.SERVICE)
        cancel = threading.Event()
        thread = threading.Thread(target=run_service_task, args=(task, cancel), daemon=True)
        thread.start()

        assert wait_until(lambda: task.snapshot().alive)
        cancel.set()
        os.kill(task.pid, signal.SIGTERM)
        thread.join(10)

        assert not thread.is_alive()
        assert task.snapshot() == TaskState(alive=False, exit_code=-1, success=False)
