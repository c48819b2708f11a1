import logging
import os
from logging.handlers import RotatingFileHandler

LOGS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")

def setup_logging(name="catalog", log_file="catalog_app.log", level=logging.INFO, max_bytes=5*1024*1024, backup_count=3):
    """Set up a logger that writes to a rotating file in ./logs/ and to stderr.

    Relative log file names are flattened into the project's logs/ directory;
    absolute paths (e.g. a pytest tmp_path) are used as given.

    Args:
        name: The name of the logger.
        log_file: The name of the log file.
        level: The level of the logger.
        max_bytes: The maximum size of the log file.
        backup_count: The number of backup log files.

    Returns:
        logger: The logger object.

    Example usage:
    from logging_config import setup_logging
    logger = setup_logging(__name__, log_file="preference_sync.log")
    """
    logger = logging.getLogger(name)
    # Re-running a Streamlit script re-imports modules; drop stale handlers
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s %(levelname)-8s "
                                    "[%(filename)s:%(lineno)d %(funcName)s()] "
                                    "%(message)s")

    os.makedirs(LOGS_DIR, exist_ok=True)
    if os.path.isabs(log_file):
        log_path = log_file
    else:
        log_path = os.path.join(LOGS_DIR, os.path.basename(log_file))

    file_handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8')
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    logger.setLevel(level)
    return logger
