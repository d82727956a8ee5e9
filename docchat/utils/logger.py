import logging
import os
import json
import sys


def setup_logging(config_path="cfg/config.json", default_level=logging.INFO) -> None:
    """Initialize logging for the docchat service.

    Reads the ``logging`` section of the config file, creates the log
    directory, and installs a detailed file handler plus a terse console
    handler on the root logger.

    Args:
        config_path: Path to configuration file (default: cfg/config.json).
        default_level: Console level used when the config does not set one.
    """
    if os.path.exists(config_path):
        with open(config_path, 'r', encoding='utf-8') as f:
            log_cfg = json.load(f).get("logging", {})
    else:
        log_cfg = {}

    log_dir = log_cfg.get("log_dir", "logs")
    log_file = log_cfg.get("log_file", "docchat.log")
    file_level = getattr(logging, log_cfg.get("file_level", "DEBUG"))
    console_level = getattr(logging, log_cfg.get("console_level", logging.getLevelName(default_level)))

    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, log_file)

    # Avoid duplicate handlers when called more than once (reloads, tests)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG)

    file_formatter = logging.Formatter(
        "%(asctime)s | %(name)-20s | %(levelname)-8s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    console_formatter = logging.Formatter("%(message)s")

    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(file_level)
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    logging.getLogger(__name__).debug(f"Logging initialized. File: {log_path}")
