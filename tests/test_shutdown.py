import time
import subprocess

import psutil

from god.supervisor import shutdown
from god.supervisor.task import Task, TaskKind


class TestIdentifyProcesses:
    """Test which processes a forwarded shutdown targets."""

    def test_tasks_without_process_are_ignored(self):
        never_started = Task(name="app1", command="serve", kind=TaskKind.SERVICE)
        exited = Task(name="app2", command="serve", kind=TaskKind.SERVICE)
        exited.mark_started(999999)
        exited.mark_exited(0)
        assert shutdown.identify_processes_to_stop([never_started, exited]) == set()

    def test_includes_descendants(self):
        proc = subprocess.Popen(["sh", "-c", "sleep 30 & wait"])
        task = Task(name="app1", command="sleep", kind=TaskKind.SERVICE)
        task.mark_started(proc.pid)
        try:
            parent = psutil.Process(proc.pid)
            for _ in range(200):
                if parent.children():
                    break
                time.sleep(0.02)
            pids = {p.pid for p in shutdown.identify_processes_to_stop([task])}
            assert proc.pid in pids
            assert len(pids) >= 2
        finally:
            shutdown.forward_termination([task], timeout=2)
            proc.wait(5)


class TestForwardTermination:
    """Test SIGTERM forwarding."""

    def test_terminates_alive_tasks(self):
        proc = subprocess.Popen(["sleep", "30"])
        task = Task(name="app1", command="sleep 30", kind=TaskKind.SERVICE)
        task.mark_started(proc.pid)

        shutdown.forward_termination([task], timeout=2)

        # psutil may already have reaped the child, so check the pid instead of the status.
        proc.wait(5)
        assert not psutil.pid_exists(proc.pid)

    def test_nothing_to_stop(self):
        shutdown.forward_termination([], timeout=1)
