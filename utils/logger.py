# utils/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from config import BACKUP_COUNT, LOG_DIR, LOG_FILE_NAME, LOG_LEVEL, MAX_LOG_BYTES

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'

# application logger; library modules log through logging.getLogger(__name__)
# under the "syntax" package, which is attached to the same handlers
bridge_logger = logging.getLogger("TextMateBridge")
_LIBRARY_LOGGERS = ("syntax",)


def setup_bridge_logger(level: str | None = None, log_dir: str | None = None) -> logging.Logger:
    level = (level or LOG_LEVEL).upper()
    log_dir = LOG_DIR if log_dir is None else log_dir

    if not bridge_logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        handlers = [console_handler]

        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, LOG_FILE_NAME), mode="a", encoding="utf-8",
                maxBytes=MAX_LOG_BYTES, backupCount=BACKUP_COUNT,
            )
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)

        for name in (bridge_logger.name,) + _LIBRARY_LOGGERS:
            logger = logging.getLogger(name)
            for handler in handlers:
                logger.addHandler(handler)
            logger.propagate = False

    for name in (bridge_logger.name,) + _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(level)
    return bridge_logger
