import logging
import sys

from app.core.config import LOG_LEVEL

# General API logger
api_logger = logging.getLogger("TextMateBridgeAPI")
api_logger.setLevel(LOG_LEVEL)
if not api_logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s')
    console_handler.setFormatter(formatter)
    api_logger.addHandler(console_handler)
