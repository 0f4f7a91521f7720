import argparse
from typing import List, Optional, Sequence, Tuple

from god import __version__
from god.supervisor.task import TaskKind, TaskSpec


def parse_task_arg(raw: str, kind: TaskKind) -> Optional[TaskSpec]:
    """
    Parses a '[alias:]command' argument.

    The first colon separates the alias only if it comes before any whitespace,
    so 'web:nginx -g daemon off;' has the alias 'web' while
    "sh -c 'echo a:b'" is a plain command.

    :param raw: The argument as given on the command line.
    :param kind: The kind of task the argument describes.
    :return: The task spec, or None if there is no command to run.
    """
    raw = raw.strip()
    if not raw:
        return None

    alias = None
    command = raw
    colon = raw.find(":")
    if colon != -1 and not any(ch.isspace() for ch in raw[:colon]):
        alias = raw[:colon].strip() or None
        command = raw[colon + 1:].strip()

    if not command:
        return None
    return TaskSpec(command=command, kind=kind, alias=alias)


def parse_task_args(values: Sequence[str], kind: TaskKind) -> List[Tuple[int, TaskSpec]]:
    """
    Parses repeated task arguments, keeping each one's 1-based position.

    Positions count skipped (empty) arguments too, so generated names stay
    stable: the third '-c' is always 'app3'.
    """
    specs = []
    for index, raw in enumerate(values, start=1):
        spec = parse_task_arg(raw, kind)
        if spec is not None:
            specs.append((index, spec))
    return specs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="god",
        description="Minimal container init: run init tasks, then supervise services and report their health.",
    )
    parser.add_argument(
        "-c", "--command", dest="commands", action="append", default=[], metavar="[ALIAS:]COMMAND",
        help="Command to start a service, allowing multiple -c flags",
    )
    parser.add_argument(
        "-i", "--init", dest="init_commands", action="append", default=[], metavar="[ALIAS:]COMMAND",
        help="One-time initialization command run before any service, allowing multiple -i flags",
    )
    parser.add_argument(
        "-l", "--listen", dest="listen_addr", default=None, metavar="ADDR",
        help="Address to listen for health checks (empty to disable, default from GOD_LISTEN_ADDR or 127.0.0.1:7788)",
    )
    parser.add_argument("-d", "--debug", action="store_true", default=None, help="Enable debug logging")
    parser.add_argument(
        "--init-concurrent", action="store_true", default=None,
        help="Run init tasks in parallel instead of one after another",
    )
    parser.add_argument(
        "--forward-signals", action="store_true", default=None,
        help="On shutdown, terminate the services instead of only waiting for them to exit",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.commands and not args.init_commands:
        parser.error("No commands provided.")
    return args
