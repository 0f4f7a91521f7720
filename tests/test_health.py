import threading

from god.supervisor.health import build_health_report
from god.supervisor.task import Task, TaskKind


def _closed_gate() -> threading.Event:
    gate = threading.Event()
    gate.set()
    return gate


def _service(name, alive=True, exit_code=None):
    task = Task(name=name, command="serve", kind=TaskKind.SERVICE)
    if alive:
        task.mark_started(100)
    elif exit_code is not None:
        task.mark_started(100)
        task.mark_exited(exit_code)
    return task


def _init(name, exit_code):
    task = Task(name=name, command="setup", kind=TaskKind.INIT)
    task.mark_started(100)
    task.mark_exited(exit_code)
    return task


class TestHealthReport:
    """Test health aggregation."""

    def test_no_tasks_is_healthy_regardless_of_gate(self):
        for gate in (threading.Event(), _closed_gate()):
            report = build_health_report([], gate)
            assert report.healthy
            assert report.status_code == 200
            assert report.text == "Health Check:\nNo processes configured\n"

    def test_open_gate_reports_initialization_in_progress(self):
        report = build_health_report([_service("app1")], threading.Event())
        assert not report.healthy
        assert report.status_code == 500
        assert report.text == "Health Check:\nInitialization in progress...\n"

    def test_healthy_services(self):
        report = build_health_report([_service("app1"), _service("app2")], _closed_gate())
        assert report.status_code == 200
        assert report.text == "Health Check:\napp1: Healthy (ExitCode=0)\napp2: Healthy (ExitCode=0)\n"

    def test_dead_service_is_unhealthy(self):
        report = build_health_report([_service("app1"), _service("app2", alive=False, exit_code=137)], _closed_gate())
        assert report.status_code == 500
        assert report.lines == ["app1: Healthy (ExitCode=0)", "app2: Unhealthy (ExitCode=137)"]

    def test_init_tasks(self):
        report = build_health_report([_init("init1", 0), _init("init2", 1)], _closed_gate())
        assert report.status_code == 500
        assert report.lines == ["init1: Completed (ExitCode=0)", "init2: Failed (ExitCode=1)"]

    def test_lines_follow_registration_order(self):
        tasks = [_init("init1", 0), _service("web"), _service("php")]
        report = build_health_report(tasks, _closed_gate())
        assert report.healthy
        assert [line.split(":")[0] for line in report.lines] == ["init1", "web", "php"]

    def test_repeated_queries_are_identical(self):
        tasks = [_init("init1", 0), _service("web"), _service("php", alive=False, exit_code=2)]
        gate = _closed_gate()
        assert build_health_report(tasks, gate).text == build_health_report(tasks, gate).text
