import sys
from typing import Optional

import loguru
from loguru import logger as loguru_logger

LOG_FORMAT = (
    "[<green><b>{time:YYYY-MM-DD HH:mm:ss.SS}</b></green>]"
    "[<cyan><b>{file}:{line}</b></cyan> - <cyan>{function}</cyan>]"
    "[<level>{level}</level>] {message}"
)


class LoggerManager:
    """Owns the single loguru sink used across the package."""

    def __init__(self):
        self._handler_id: Optional[int] = None
        self._logger: "loguru.Logger" = loguru_logger
        self._logger.remove()

    def configure(self, level: int | str = "INFO") -> "loguru.Logger":
        if self._handler_id is not None:
            self._logger.remove(self._handler_id)
        self._handler_id = self._logger.add(sys.stderr, format=LOG_FORMAT, level=level)
        return self._logger

    def get_logger(self) -> "loguru.Logger":
        if self._handler_id is None:
            return self.configure()
        return self._logger


_logger_manager = LoggerManager()


def configure_logger(level: int | str = "INFO") -> "loguru.Logger":
    """Reconfigure the sink, e.g. from `Settings.log_level`."""
    return _logger_manager.configure(level)


def get_logger() -> "loguru.Logger":
    return _logger_manager.get_logger()


logger = get_logger()
