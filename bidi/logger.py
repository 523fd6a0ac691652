import logging
import sys
from typing import Iterable, Optional

FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str = "bidi", level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """Return a configured logger writing to stdout and, optionally, a file."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    formatter = logging.Formatter(fmt=FORMAT, datefmt=DATE_FORMAT)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def resolve_log_level(level) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def quiet_libraries(level: int = logging.WARNING, names: Iterable[str] = ("urllib3", "grpc", "hiero_sdk_python")) -> None:
    """Keep HTTP and gRPC transport chatter out of operation logs."""
    for name in names:
        logging.getLogger(name).setLevel(level)
