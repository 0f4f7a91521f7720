import threading
from typing import TextIO


class PrefixedWriter:
    """
    A file-like wrapper that prefixes each line with the task name.

    Every non-empty line of the written text becomes `[<name>] <line>\\n` on the
    wrapped stream. Empty lines are dropped.
    """

    def __init__(self, name: str, stream: TextIO) -> None:
        self.name = name
        self.stream = stream
        self._lock = threading.Lock()

    def write(self, text: str) -> int:
        if not text:
            return 0
        with self._lock:
            for line in text.split("\n"):
                line = line.rstrip("\r")
                if line:
                    self.stream.write(f"[{self.name}] {line}\n")
            self.stream.flush()
        return len(text)

    def flush(self) -> None:
        with self._lock:
            self.stream.flush()
