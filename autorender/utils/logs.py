__all__ = ["logger", "handler", "error_handler"]

import logging
import logging.handlers
import os
import sys

LOGS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "../../logs")
PATH = os.path.join(LOGS_DIR, "autorender.log")
ERROR_PATH = os.path.join(LOGS_DIR, "error.log")

os.makedirs(LOGS_DIR, exist_ok=True)

logger = logging.getLogger("autorender")
# DEBUG when LOG_LEVEL=DEBUG for verbose frame/transport logs
if os.environ.get("LOG_LEVEL", "").upper() == "DEBUG":
    logger.setLevel(logging.DEBUG)
else:
    logger.setLevel(logging.INFO)
logging.getLogger("discord").setLevel(logging.INFO)
logging.getLogger("discord.http").setLevel(logging.WARNING)

fmt = "[{asctime}] [{levelname:<8}] {name}: {message}"
dt_fmt = "%Y-%m-%d %H:%M:%S"
formatter = logging.Formatter(fmt, dt_fmt, style="{")

# File handler: everything (logs/autorender.log)
handler = logging.handlers.RotatingFileHandler(
    filename=PATH,
    encoding="utf-8",
    maxBytes=100 * 1024 * 1024,  # 100 MiB
    backupCount=7,
)
handler.setFormatter(formatter)
logger.addHandler(handler)

# File handler: errors only (logs/error.log)
error_handler = logging.handlers.RotatingFileHandler(
    filename=ERROR_PATH,
    encoding="utf-8",
    maxBytes=100 * 1024 * 1024,
    backupCount=7,
)
error_handler.setLevel(logging.ERROR)
error_handler.setFormatter(formatter)
logger.addHandler(error_handler)

stream_handler = logging.StreamHandler(sys.stderr)
stream_handler.setFormatter(formatter)
logger.addHandler(stream_handler)
