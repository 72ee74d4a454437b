"""Centralized logging configuration for the backend services."""
import logging
import os
import sys
import threading
from collections import deque
from datetime import datetime
from typing import List, Optional


class ServiceLogger:
    """Service logger that also keeps recent entries for the /logs endpoint."""

    def __init__(self, service_name: str, level: str = "INFO", log_dir: Optional[str] = "logs"):
        self.service_name = service_name
        self.logger = logging.getLogger(service_name)
        self.logger.setLevel(logging.DEBUG)

        # Several modules share one service logger name; attach handlers once
        if not self.logger.handlers:
            formatter = logging.Formatter(
                '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
                file_handler = logging.FileHandler(os.path.join(log_dir, f'{service_name}.log'))
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(formatter)
                self.logger.addHandler(file_handler)

        self.max_buffer_size = 100
        self.log_buffer: deque = deque(maxlen=self.max_buffer_size)
        self._buffer_lock = threading.Lock()

    def _add_to_buffer(self, level: str, message: str, extra: Optional[dict] = None):
        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "service": self.service_name,
            "message": message,
            "extra": extra or {}
        }
        with self._buffer_lock:
            self.log_buffer.append(entry)

    def debug(self, message: str, **kwargs):
        self.logger.debug(message)
        self._add_to_buffer("DEBUG", message, kwargs)

    def info(self, message: str, **kwargs):
        self.logger.info(message)
        self._add_to_buffer("INFO", message, kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(message)
        self._add_to_buffer("WARNING", message, kwargs)

    def error(self, message: str, **kwargs):
        self.logger.error(message)
        self._add_to_buffer("ERROR", message, kwargs)

    def exception(self, message: str, **kwargs):
        """Log at error level with the active traceback attached."""
        self.logger.exception(message)
        self._add_to_buffer("ERROR", message, kwargs)

    def get_recent_logs(self, limit: int = 50) -> List[dict]:
        """Get recent log entries, oldest first."""
        with self._buffer_lock:
            return list(self.log_buffer)[-limit:] if limit > 0 else []

    def clear_logs(self):
        with self._buffer_lock:
            self.log_buffer.clear()
