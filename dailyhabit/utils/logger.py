import logging
import logging.config

from dailyhabit.config import TrackerConfig


def setup_logging(config: TrackerConfig) -> logging.Logger:
    if config.log_to_file:
        config.log_dir.mkdir(exist_ok=True, parents=True)
    logging.config.dictConfig(config.get_logging_config())
    return logging.getLogger("dailyhabit")
