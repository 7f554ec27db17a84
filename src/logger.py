"""
Logging Configuration Module.

Configures the application logger once at startup. Library modules log through
the named application logger and pass structured dict messages, e.g.
``logger.info({"message": "...", "repository": "owner/repo"})``; this module
decides where those records end up:

- A rotating JSON-lines file in the configured log directory
- The console (human readable in development, JSON otherwise)
- Optionally the local syslog daemon
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, SysLogHandler
from typing import Any, Dict, Optional


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON documents."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        if isinstance(record.msg, dict):
            payload.update(record.msg)
        else:
            payload["message"] = record.getMessage()
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human readable formatter that flattens dict messages into key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-8s %(name)s - %(message)s")

    def formatMessage(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, dict):
            fields = dict(record.msg)
            message = fields.pop("message", "")
            extras = " ".join(f"{key}={value}" for key, value in fields.items())
            record.message = f"{message} {extras}".strip()
        return super().formatMessage(record)


class LogManager:
    """
    Configures the named application logger.

    Calling it again for the same application name replaces the previously
    installed handlers instead of adding duplicates.

    Attributes:
        logger (logging.Logger): The configured application logger.
    """

    MAX_BYTES = 5 * 1024 * 1024
    BACKUP_COUNT = 5

    def __init__(
        self,
        app_name: str,
        log_dir: Optional[str] = None,
        development: bool = False,
        level: int = logging.DEBUG,
        syslog: bool = False,
    ):
        """Initialize the log manager.

        Args:
            app_name (str): Name of the application logger, also used for the log file.
            log_dir (Optional[str]): Directory for the log file. No file is written when None.
            development (bool): Use the human readable console format.
            level (int): Logging level.
            syslog (bool): Also ship records to the local syslog daemon.
        """
        self.app_name = app_name
        self.log_dir = log_dir
        self.logger = logging.getLogger(app_name)
        self.logger.setLevel(level)

        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            ConsoleFormatter() if development else JsonFormatter()
        )
        self.logger.addHandler(console_handler)

        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                self.log_file,
                maxBytes=self.MAX_BYTES,
                backupCount=self.BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setFormatter(JsonFormatter())
            self.logger.addHandler(file_handler)

        if syslog:
            syslog_handler = SysLogHandler(address=self._syslog_address())
            syslog_handler.setFormatter(JsonFormatter())
            self.logger.addHandler(syslog_handler)

    @property
    def log_file(self) -> Optional[str]:
        """Path of the JSON-lines log file, if file logging is enabled."""
        if not self.log_dir:
            return None
        return os.path.join(self.log_dir, f"{self.app_name}.log")

    @staticmethod
    def _syslog_address():
        for path in ("/dev/log", "/var/run/syslog"):
            if os.path.exists(path):
                return path
        return ("localhost", 514)
