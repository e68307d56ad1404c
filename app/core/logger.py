import logging
import os
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from loguru import logger

from app.core.config import settings

if TYPE_CHECKING:
    from loguru import Record

# ============================================
# REQUEST CONTEXT
# ============================================
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Set by the session middleware once the caller is resolved
user_id_var: ContextVar[Optional[int | str]] = ContextVar("user_id", default=None)


# ============================================
# SINKS
# ============================================
LOG_DIR = Path(settings.log_dir)
LOG_FILE = LOG_DIR / "session.log"

LOG_LEVELs = {
    50: "CRITICAL",
    40: "ERROR",
    30: "WARNING",
    20: "INFO",
    10: "DEBUG",
    5: "TRACE",
    0: "NOTSET",
}

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<yellow>ReqID:{extra[request_id]}</yellow> | "
    "<blue>User:{extra[user_id]}</blue> | "
    "<cyan>{name}:{function}:{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss!UTC} | "
    "{level: <8} | "
    "PID:{extra[process_id]} | "
    "ReqID:{extra[request_id]} | "
    "User:{extra[user_id]} | "
    "{name}:{function}:{line} | "
    "{message}"
)


def correlation_filter(record: "Record") -> bool:
    """
    Stamp every record with the request id, the resolved user and the process id.

    Records emitted outside a request get a fresh request id and `-` as user.
    """
    user_id = user_id_var.get()

    record["extra"]["request_id"] = request_id_var.get() or str(uuid.uuid4())[:8]
    record["extra"]["user_id"] = "-" if user_id is None else user_id
    record["extra"]["process_id"] = os.getpid()

    return True


class InterceptHandler(logging.Handler):
    """Route standard `logging` records (uvicorn, sqlalchemy) into loguru"""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logger():
    """
    Configure loguru for the application.

    Logs go to a colored console sink and a rotating file sink shared by all
    workers. Call once during startup, in the FastAPI lifespan.
    """
    logger.remove()

    log_level = LOG_LEVELs.get(settings.log_level, "INFO")

    logger.add(
        sys.stdout,
        format=CONSOLE_FORMAT,
        level="DEBUG" if settings.is_development else log_level,
        colorize=True,
        enqueue=True,
        filter=correlation_filter,
    )

    LOG_DIR.mkdir(parents=True, exist_ok=True)

    logger.add(
        LOG_FILE,
        format=FILE_FORMAT,
        level=log_level,
        rotation="10 MB",
        retention="3 months",
        compression="gz",
        enqueue=True,
        filter=correlation_filter,
        backtrace=True,
        # Local variables could hold raw tokens
        diagnose=False,
    )

    logger.info(
        f"Logger initialized | "
        f"Environment: {settings.current_environment.value} | "
        f"Level: {log_level}"
    )


def configure_uvicorn_logging():
    """Replace uvicorn's handlers with InterceptHandler, after setup_logger()"""
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in logging.root.manager.loggerDict.keys():
        if name.startswith("uvicorn"):
            logging.getLogger(name).handlers = [InterceptHandler()]
            logging.getLogger(name).propagate = False

    logger.debug("Uvicorn logging configured to use Loguru")


def shutdown_logger():
    """Flush queued records before the process exits"""
    logger.info("Shutting down logger...")
    logger.complete()
