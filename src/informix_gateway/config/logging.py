from datetime import datetime
from logging.config import dictConfig
from pathlib import Path
from typing import Any

import yaml

_ROOT_LOGGER = "informix_gateway"


def configure_logging(verbose: bool, quiet: bool, log_dir: Path | None = None) -> None:
    with Path(__file__).parent.joinpath("log_config.yaml").open(mode="r") as log_config_file:
        log_config = yaml.safe_load(log_config_file)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler_name = "logFile"
        log_config["handlers"][file_handler_name] = _get_logging_file_handler(log_dir)
        log_config["loggers"][_ROOT_LOGGER]["handlers"].append(file_handler_name)

    if quiet:
        log_config["loggers"][_ROOT_LOGGER]["handlers"].remove("console")
    if verbose:
        log_config["loggers"][_ROOT_LOGGER]["level"] = "DEBUG"

    dictConfig(log_config)


def _get_logging_file_handler(log_dir: Path) -> dict[str, Any]:
    return {
        "filename": str(log_dir.joinpath(_get_current_log_filename())),
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "main",
        "maxBytes": 100000000,  # 100MB
        "backupCount": 12,
    }


def _get_current_log_filename() -> str:
    # one file per month
    return datetime.now().strftime("igw-%Y-%m.log")
