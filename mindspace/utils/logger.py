import logging
import os

# Log directory can be moved with LOG_DIR (defaults to ./logs)
LOG_DIR = os.getenv("LOG_DIR", "logs")

# Default format used when the YAML config does not provide one
DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - %(module)s - %(message)s"

# Shared logger instance
logger = logging.getLogger("MindSpace")


def setup_logging(log_cfg: dict = None):
    """
    Configure root logging from the `logging` section of config.yaml.
    Falls back to a stream handler when nothing is configured.
    """
    log_cfg = log_cfg or {}
    handlers = []
    if log_cfg.get("log_file"):
        os.makedirs(LOG_DIR, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(LOG_DIR, log_cfg["log_file"])))
    if log_cfg.get("use_stream_handler", True):
        handlers.append(logging.StreamHandler())
    if not handlers:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=log_cfg.get("level", "INFO").upper(),
        format=log_cfg.get("format", DEFAULT_FORMAT),
        handlers=handlers,
    )
    logger.info("✅ Logger initialized successfully")
    return logger
