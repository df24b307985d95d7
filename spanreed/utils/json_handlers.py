import json
from pathlib import Path
from typing import Any, Optional

from spanreed.logger import get_logger

logger = get_logger(__name__)


def load_config(config_path: Optional[str]) -> dict[str, Any]:
    """
    Load a JSON configuration file safely.

    Args:
        config_path (str): Path to the JSON configuration file.

    Returns:
        Dict[str, Any]: Parsed configuration as a dictionary.
                        Returns an empty dict if the file does not exist,
                        is invalid, or does not hold a JSON object.
    """
    if config_path is None:
        logger.debug("Config file is `None`")
        return {}

    path = Path(config_path)

    if not path.is_file():
        logger.debug(f"Config file not found: {config_path}")
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            config = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning(f"JSON decode error in {config_path}: {e}")
        return {}
    except OSError as e:
        logger.warning(f"OS error reading {config_path}: {e}")
        return {}

    if not isinstance(config, dict):
        logger.warning(f"Config file {config_path} does not hold a JSON object; ignoring it")
        return {}

    logger.debug(f"Loaded config from: {config_path}")
    return config

def is_jsonable(value: Any) -> bool:
    """
    Return True if `value` can be serialized by `json.dumps`.

    Used by `modify-property` to refuse front-matter values (YAML sets,
    binary scalars) that have no JSON form.
    """
    try:
        json.dumps(value)
        return True
    except (TypeError, ValueError, RecursionError):
        return False
