import logging
import logging.config
from pathlib import Path
from typing import Optional

import yaml

from ..config.settings import get_settings


def setup_logging(config_path: Optional[Path] = None) -> None:
    """
    Set up logging configuration from a YAML file.

    Args:
        config_path (Path): Path to the logging configuration YAML file.
            Defaults to ``LOGGING_CONFIG_PATH`` from the settings.
    """
    if config_path is None:
        config_path = Path(get_settings().LOGGING_CONFIG_PATH)

    if config_path.exists():
        try:
            with open(config_path, 'rt') as f:
                log_config = yaml.safe_load(f.read())
            logging.config.dictConfig(log_config)
            logging.getLogger(__name__).info(f"Logging configured successfully from {config_path}")
        except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
            logging.basicConfig(level=logging.INFO) # Basic config as fallback
            logging.error(f"Error loading logging configuration from {config_path}: {e}. Using basicConfig.")
    else:
        logging.basicConfig(level=logging.INFO) # Basic config if no file found
        logging.warning(f"Logging configuration file not found at {config_path}. Using basicConfig.")
