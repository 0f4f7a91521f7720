import sys
import shlex
import shutil
import logging
import threading
import subprocess
from typing import IO, List, Optional, TextIO

from god.supervisor.task import Task
from god.supervisor.writer import PrefixedWriter

log = logging.getLogger(__name__)


#* --- Process Creation ---
def build_command_args(command: str, shell: str = "sh") -> List[str]:
    """
    Returns the argument vector used to run a task's command string.

    The command is handed unmodified to `<shell> -c` when the shell can be found
    on PATH. Otherwise it is split into an executable and its arguments.

    :param command: The command string of the task.
    :param shell: The shell executable to look up.
    :return: The argument list for `subprocess.Popen`.
    :raises ValueError: If the command is empty after splitting.
    """
    if shutil.which(shell):
        return [shell, "-c", command]

    log.debug(f"Shell '{shell}' not found, using regular command execution.")
    parts = shlex.split(command)
    if not parts:
        raise ValueError("No command provided for process.")
    return parts


def spawn_process(task: Task, shell: str = "sh") -> subprocess.Popen:
    """
    Launches the task's command with both output streams piped.

    The child stays in the supervisor's process group, so a Ctrl+C in a terminal
    reaches it directly.

    :raises OSError: If the executable cannot be started.
    :raises ValueError: If the command cannot be turned into arguments.
    """
    args = build_command_args(task.command, shell)
    return subprocess.Popen(args, stdout=subprocess.PIPE, stderr=subprocess.PIPE, stdin=subprocess.DEVNULL)


def interpret_exit_status(returncode: Optional[int]) -> int:
    """Maps a Popen return code to the recorded exit code; -1 for signal termination."""
    if returncode is None or returncode < 0:
        return -1
    return returncode


#* --- Output Attachment ---
def _read_pipe(pipe: IO[bytes], writer: PrefixedWriter) -> None:
    """Target function for reader threads. Copies lines from a subprocess pipe to the writer."""
    try:
        for line_bytes in iter(pipe.readline, b""):
            writer.write(line_bytes.decode("utf-8", errors="replace"))
    except (OSError, ValueError) as e:
        log.debug(f"Pipe reader for {writer.name} stream exited: {e}")
    finally:
        pipe.close()


def attach_output(
    process: subprocess.Popen,
    name: str,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> List[threading.Thread]:
    """
    Starts background threads that copy a process's stdout/stderr, prefixed with its name.

    Consuming the pipes keeps them from filling up and blocking the child.

    :param process: The `subprocess.Popen` object to read from.
    :param name: The task name used as the line prefix.
    :param stdout: Destination for the child's stdout, `sys.stdout` by default.
    :param stderr: Destination for the child's stderr, `sys.stderr` by default.
    :return: The started reader threads.
    """
    readers = []
    for pipe, stream, label in (
        (process.stdout, stdout or sys.stdout, "stdout"),
        (process.stderr, stderr or sys.stderr, "stderr"),
    ):
        if pipe is None:
            continue
        reader = threading.Thread(
            target=_read_pipe,
            args=(pipe, PrefixedWriter(name, stream)),
            daemon=True,
            name=f"{name}-{label}",
        )
        reader.start()
        readers.append(reader)
    return readers


def drain_output(readers: List[threading.Thread], timeout: float) -> None:
    """
    Waits for the reader threads to copy the remaining output.

    A grandchild that inherited the pipes can keep them open after the task
    itself exited, so the wait is bounded.
    """
    for reader in readers:
        reader.join(timeout)
        if reader.is_alive():
            log.debug(f"Output reader '{reader.name}' still open after {timeout}s, detaching.")
