"""Configure logging for SimRisk.

The engine writes to the ``simrisk`` logger; :class:`LogConfig` decides where
those records go. Nothing is shown until a caller enables logging.

Records emitted by the engine
=============================
* ``DEBUG``   run start, per-item PERT shapes
* ``INFO``    run finished, elapsed time
* ``WARNING`` clamp events, totals outside ``[sum(a), sum(b)]``, zero total variance
"""
from __future__ import annotations
import logging
import colorlog

_LOGGER_NAME = "simrisk"

_LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'white',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'bold_red',
}


class LogConfig:
    """Route ``simrisk`` records to a colored console and, optionally, a file.

    Parameters
    ----------
    enabled : bool
        Records reach the handlers only while this is set.
    console_level : int
        Threshold of the console handler, e.g. ``logging.WARNING``.
    file_level : int
        Threshold of the file handler.
    file_path : str, optional
        Log file. No file handler is created when logging is disabled or the
        path is ``None``.

    A new instance replaces the handlers installed by the previous one.
    """
    _last_instance = None

    def __init__(self, enabled=False, console_level=logging.INFO, file_level=logging.DEBUG,
                 file_path='simrisk.log'):
        self.enabled = enabled
        self.console_level = console_level
        self.file_level = file_level
        self.file_path = file_path
        self.logger = logging.getLogger(_LOGGER_NAME)
        self._clear_existing_handlers()
        self._configure_logger()
        LogConfig._last_instance = self

    def _clear_existing_handlers(self) -> None:
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

    def _enabled(self, record) -> bool:
        return self.enabled

    def _configure_logger(self):
        self.logger.setLevel(logging.DEBUG)

        console = logging.StreamHandler()
        console.setLevel(self.console_level)
        console.addFilter(self._enabled)
        console.setFormatter(colorlog.ColoredFormatter('%(log_color)s%(levelname)s:%(name)s:%(message)s',
                                                       log_colors=_LOG_COLORS))
        self.logger.addHandler(console)

        if self.enabled and self.file_path:
            file_handler = logging.FileHandler(self.file_path)
            file_handler.setLevel(self.file_level)
            file_handler.setFormatter(logging.Formatter('%(asctime)s:%(levelname)s:%(name)s:%(message)s'))
            file_handler.addFilter(self._enabled)
            self.logger.addHandler(file_handler)

    @classmethod
    def last_instance(cls) -> LogConfig:
        """Return the latest :class:`LogConfig` instance or create a disabled default one."""
        if cls._last_instance is None:
            return LogConfig(enabled=False)
        return cls._last_instance


def log_config() -> LogConfig:
    """Return the current :class:`LogConfig` instance."""
    return LogConfig.last_instance()


logger = logging.getLogger(_LOGGER_NAME)
