import sys
import signal
import logging
import threading
import argparse
from typing import Callable, Optional, Sequence

import setproctitle

from god.cli import parse_args, parse_task_args
from god.config import MergedSettings
from god.log import setup_logging
from god.supervisor import TaskKind, TaskManager
from god.web import HealthServer

log = logging.getLogger("god")


def build_settings(args: argparse.Namespace) -> MergedSettings:
    """Merges the command-line flags the user passed over the configured defaults."""
    settings = MergedSettings()
    settings.apply_overrides({
        "HEALTH_LISTEN_ADDR": args.listen_addr,
        "DEBUG": args.debug,
        "INIT_CONCURRENT": args.init_concurrent,
        "FORWARD_SIGNALS": args.forward_signals,
    })
    return settings


def build_manager(
    args: argparse.Namespace, settings: MergedSettings, stop_event: Optional[threading.Event] = None
) -> TaskManager:
    """
    Creates the TaskManager and registers the init tasks, then the services.

    `stop_event` becomes the manager's cancellation token, so a shutdown request
    received during the init phase keeps the services from being launched.
    """
    manager = TaskManager(
        init_concurrent=settings.INIT_CONCURRENT,
        forward_signals=settings.FORWARD_SIGNALS,
        graceful_timeout=settings.GRACEFUL_SHUTDOWN_TIMEOUT,
        drain_timeout=settings.OUTPUT_DRAIN_TIMEOUT,
        shell=settings.SHELL,
        logger=logging.getLogger("god.supervisor"),
        cancel_event=stop_event,
    )
    for kind, values in ((TaskKind.INIT, args.init_commands), (TaskKind.SERVICE, args.commands)):
        for index, spec in parse_task_args(values, kind):
            task = manager.add_spec(spec, index)
            if task is not None:
                log.info(f"Adding {kind.value} task: {task.name} -> {task.command}")
    return manager


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Turns SIGINT/SIGTERM into a request for graceful shutdown."""
    def handle_shutdown_signal(signum, frame):
        log.info(f"Received {signal.Signals(signum).name}, shutting down gracefully...")
        stop_event.set()

    signal.signal(signal.SIGINT, handle_shutdown_signal)
    signal.signal(signal.SIGTERM, handle_shutdown_signal)


def supervise(
    manager: TaskManager, stop_event: threading.Event, poll_interval: float, serving: Callable[[], bool]
) -> int:
    """
    Runs the task lifecycle until a shutdown is requested or every service exited.

    When the init phase fails and the health endpoint is up, the supervisor stays
    up so probes can read the failure, until it is told to stop or the endpoint
    goes away.

    :param serving: Tells whether the health endpoint is currently being served.
    :return: The process exit code.
    """
    services_started = manager.start()
    if stop_event.is_set() and not services_started:
        log.info("Shutdown requested during initialization.")
        manager.shutdown()
        return 0

    while True:
        if services_started and manager.wait(timeout=0):
            log.info("All services have exited.")
            return 0
        if not services_started and not serving():
            log.error("Initialization failed and the health check server is not running, exiting.")
            return 1
        if stop_event.wait(poll_interval):
            break

    manager.shutdown()
    return 0 if services_started else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """The main entry point of the supervisor."""
    args = parse_args(argv)
    settings = build_settings(args)

    setup_logging(logging.DEBUG if settings.DEBUG else logging.INFO)
    setproctitle.setproctitle(settings.PROCESS_TITLE)

    log.debug(f"Effective settings: {settings.as_dict()}")

    stop_event = threading.Event()
    manager = build_manager(args, settings, stop_event)
    install_signal_handlers(stop_event)

    # Started before the init phase so probes can see it in progress.
    health_server = None
    if settings.HEALTH_LISTEN_ADDR:
        health_server = HealthServer(manager, settings.HEALTH_LISTEN_ADDR, settings.HEALTH_PATH)
        health_server.start()
    else:
        log.info("Health check server disabled")

    try:
        serving = health_server.is_serving if health_server is not None else lambda: False
        return supervise(manager, stop_event, settings.SUPERVISOR_POLL_INTERVAL, serving)
    finally:
        if health_server is not None:
            health_server.stop()


def run() -> None:
    sys.exit(main())
