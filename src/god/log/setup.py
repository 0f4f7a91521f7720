import logging
import sys


class MainFormatter(logging.Formatter):
    """Formatter for the supervisor's own diagnostics."""

    def __init__(self) -> None:
        super().__init__('%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s')


def setup_logging(console_level: int = logging.INFO) -> None:
    """
    Configures the root logger for the application.
    This sets up a single console handler, clearing any previously configured
    handlers to prevent duplication.

    Child process output does not go through logging; it is written directly to
    stdout/stderr by the task's output attachment.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # Probes hit the health endpoint every few seconds.
    logging.getLogger("hypercorn.access").disabled = True
