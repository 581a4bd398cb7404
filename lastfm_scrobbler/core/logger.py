"""
Logging configuration for lastfm-scrobbler.

The library itself only obtains loggers via get_logger() and never
configures handlers. Applications (including the bundled CLI) call
setup_logging() once at startup, which sets up:
    - Console: Colored level + message, written through tqdm so that the
      batch import progress bar is not broken by log lines
    - log_full_<ts>.log: Complete log of all events (DEBUG and above)
    - log_errors_<ts>.log: Only ERROR and CRITICAL level messages
    - scrobble_failures_<ts>.log: Plays that could not be submitted

The log files are only created when a log directory is given.

Usage:
    from lastfm_scrobbler.core.logger import setup_logging, get_logger

    setup_logging(Path("~/.scrobble/logs").expanduser())  # Call once at startup
    logger = get_logger(__name__)  # Get logger for each module

    logger.info("Submitting batch")
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


LOG_FULL_FILENAME = "log_full"
LOG_ERRORS_FILENAME = "log_errors"
SCROBBLE_FAILURES_FILENAME = "scrobble_failures"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that adds colors to console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Logging handler that writes to console without breaking tqdm progress bars.

    tqdm progress bars write to stderr and use carriage returns to update
    in-place. This handler uses tqdm.write() which places messages above
    any active progress bar.

    Attributes:
        stream: The output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class ScrobbleFailureHandler(logging.Handler):
    """
    Handler that captures plays which could not be submitted.

    Listens for log records carrying scrobble failure information and writes
    them to scrobble_failures.log in a format that is easy to re-import by
    hand:

        1700000000 | Kendrick Lamar - Wesley's Theory [To Pimp a Butterfly]
        reason: Invalid session key - Please re-authenticate

    The handler looks for these extra fields in log records:
        - 'scrobble_failed_artist': The artist name
        - 'scrobble_failed_track': The track title
        - 'scrobble_failed_timestamp': Play start, epoch seconds
        - 'scrobble_failed_album': The album name (optional)
        - 'scrobble_failed_reason': Why the submission failed

    Only records containing these fields are written. Use
    log_scrobble_failure() rather than building the extras by hand.

    Attributes:
        report_path: Path to the scrobble_failures log file.
        report_file: Open file handle, set by open().
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """
        Open the report file for writing.

        Called by setup_logging() after handler is created.
        File is opened in write mode (overwrites existing content).
        """
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "scrobble_failed_artist"):
            return

        if self.report_file is None:
            return

        try:
            artist = getattr(record, "scrobble_failed_artist", "Unknown")
            track = getattr(record, "scrobble_failed_track", "Unknown")
            timestamp = getattr(record, "scrobble_failed_timestamp", "?")
            album = getattr(record, "scrobble_failed_album", None)
            reason = getattr(record, "scrobble_failed_reason", "")

            line = f"{timestamp} | {artist} - {track}"
            if album:
                line += f" [{album}]"

            self.report_file.write(f"{line}\n")
            self.report_file.write(f"reason: {reason}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """
        Close the report file handle.

        Safe to call multiple times.
        """
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """
    Filter that only allows ERROR and CRITICAL level records.

    Used by the error log file handler to exclude DEBUG, INFO, and WARNING.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(log_dir: Path | None = None, level: str = "INFO") -> None:
    """
    Configure the logging system for an application using the library.

    Should be called ONCE at startup, after the configuration is loaded.

    Args:
        log_dir: Directory where log files will be created. If None, only
                 the console handler is installed.
        level: Console log level name ("DEBUG", "INFO", ...).

    Behavior:
        1. Configure root logger level to DEBUG and drop existing handlers
        2. Add console handler (TqdmLoggingHandler, colored) at `level`
        3. If log_dir is given, create it and add:
           - log_full_{timestamp}.log (DEBUG)
           - log_errors_{timestamp}.log (ERROR+ via ErrorOnlyFilter)
           - scrobble_failures_{timestamp}.log (ScrobbleFailureHandler)
        4. Quiet aiohttp's own access/client loggers down to WARNING

    Thread Safety:
        This function is NOT thread-safe. Call it once from the main
        thread before starting the event loop.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    if log_dir is None:
        return

    log_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")

    full_handler = logging.FileHandler(
        log_dir / f"{LOG_FULL_FILENAME}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(
        log_dir / f"{LOG_ERRORS_FILENAME}_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    failures_handler = ScrobbleFailureHandler(
        log_dir / f"{SCROBBLE_FAILURES_FILENAME}_{timestamp}.log"
    )
    failures_handler.open()
    root_logger.addHandler(failures_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.
              This creates a hierarchy like 'lastfm_scrobbler.lastfm.client'.

    Returns:
        logging.Logger: A logger instance configured by setup_logging().

    Note:
        Without setup_logging() the library's records propagate to whatever
        handlers the host application installed, which is the usual
        arrangement for a library.
    """
    return logging.getLogger(name)


def log_scrobble_failure(logger: logging.Logger, scrobble, reason: str) -> None:
    """
    Log a play that could not be submitted.

    Attaches the extra fields ScrobbleFailureHandler looks for, so the play
    also ends up in scrobble_failures.log.

    Args:
        logger: The logger to use for the message.
        scrobble: The Scrobble record that failed.
        reason: Description of why the submission failed.

    Example:
        except ApiError as e:
            for record in batch:
                log_scrobble_failure(logger, record, e.message)
    """
    logger.error(
        f"Scrobble failed: {scrobble.artist} - {scrobble.track} ({reason})",
        extra={
            "scrobble_failed_artist": scrobble.artist,
            "scrobble_failed_track": scrobble.track,
            "scrobble_failed_timestamp": scrobble.timestamp,
            "scrobble_failed_album": scrobble.album,
            "scrobble_failed_reason": reason,
        },
    )


def shutdown_logging() -> None:
    """
    Flush, close and remove all root handlers.

    Typically called in a finally block at application exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
        root_logger.removeHandler(handler)
