import datetime
import logging
from typing_extensions import override

from mdbundle.config import settings

_installed_handlers: list[logging.Handler] = []


def configure_logging(level: str | None = None):
    """Install the console (and optional file) handlers on the root logger"""
    log_level = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(CustomFormatter())
    root_logger.addHandler(console_handler)
    _installed_handlers.append(console_handler)

    if settings.LOG_TO_FILE:
        settings.LOGGING_DIR_PATH.mkdir(parents=True, exist_ok=True)
        now: str = datetime.datetime.now().strftime("%Y-%m-%d-%H-%M")
        FILE_NAME = settings.LOGGING_DIR_PATH / f"{now}.log"

        formatter = logging.Formatter(
            fmt="%(asctime)s - [%(name)s]- %(levelname)s - [%(module)s:%(levelno)s] - %(message)s"
        )

        file_handler = logging.FileHandler(FILE_NAME, encoding="UTF-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        _installed_handlers.append(file_handler)


class CustomFormatter(logging.Formatter):
    grey: str = "\x1b[38;20m"
    yellow: str = "\x1b[33;20m"
    red: str = "\x1b[31;20m"
    bold_red: str = "\x1b[31;1m"
    reset: str = "\x1b[0m"
    custom_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    FORMATS = {
        logging.DEBUG: grey + custom_format + reset,
        logging.INFO: grey + custom_format + reset,
        logging.WARNING: yellow + custom_format + reset,
        logging.ERROR: red + custom_format + reset,
        logging.CRITICAL: bold_red + custom_format + reset,
    }

    @override
    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno)
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)
