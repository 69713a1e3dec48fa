# bookstream/core/logging_config.py
# Process-wide logging setup. Modules log through named loggers under the
# "bookstream" hierarchy, e.g. logging.getLogger("bookstream.upload").

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
