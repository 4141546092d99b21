# utils/logging_config.py
import logging

from config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
     """Attach a single stream handler to the root logger."""
     root = logging.getLogger()

     # Avoid duplicate handlers in dev reload
     if root.handlers:
          return root

     root.setLevel(level)
     stream_handler = logging.StreamHandler()
     stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
     root.addHandler(stream_handler)

     return root
