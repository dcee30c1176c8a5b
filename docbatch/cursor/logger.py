import logging
import time
from contextvars import ContextVar
from functools import wraps

from docbatch.cursor import config as cursor_config
from docbatch.exceptions import LoggerNotInitialised

LOGGER_NAME_PREFIX = "docbatch.cursor"

_cursor_logger: ContextVar[logging.LoggerAdapter | None] = ContextVar(
    "_cursor_logger", default=None
)


def init_logger(cursor_id: str, collection_name: str) -> logging.LoggerAdapter:
    """
    Cursors over the same collection share one logger, the cursor id is
    attached to every record through the returned adapter.
    """
    logger = logging.getLogger(f"{LOGGER_NAME_PREFIX}.{collection_name}")

    formatter = logging.Formatter(
        f"%(asctime)s - %(levelname)s - %(module)s.%(funcName)s(%(lineno)d) - [docbatch-cursor] - [{collection_name}] - [%(cursor_id)s] - %(message)s"
    )

    # StreamHandler
    sh = logging.StreamHandler()
    sh.setFormatter(formatter)
    for hdlr in logger.handlers[:]:  # remove all old handlers
        logger.removeHandler(hdlr)
    logger.addHandler(sh)
    logger.setLevel(cursor_config.log_level)
    logger.propagate = False

    return logging.LoggerAdapter(logger, {"cursor_id": cursor_id})


def get_logger() -> logging.LoggerAdapter:
    logger = _cursor_logger.get()
    if not logger:
        raise LoggerNotInitialised()
    return logger


def with_cursor_logger(func):
    """
    Makes the logger of the cursor, whose method is decorated, available
    to get_logger() for the duration of the call.
    """

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        token = _cursor_logger.set(self._logger)
        try:
            return func(self, *args, **kwargs)
        finally:
            _cursor_logger.reset(token)

    return wrapper


def log_method_call(func):
    """
    Logs when a cursor method starts, how long it took and whether it failed,
    along with the collection the cursor reads from.
    """

    @wraps(func)
    def wrapper(cursor, *args, **kwargs):
        logger = get_logger()
        call = f"{func.__qualname__} over '{cursor.collection_name}'"
        started = time.monotonic()
        logger.info(f"{call} started.")
        try:
            output = func(cursor, *args, **kwargs)
        except Exception as exc:
            logger.error(
                f"{call} failed after {time.monotonic() - started:.3f}s. "
                f"Exception type: '{type(exc).__name__}' and exception message: '{exc}'"
            )
            raise
        logger.info(f"{call} succeeded in {time.monotonic() - started:.3f}s.")
        return output

    return wrapper
