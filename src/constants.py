"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    SERVICE_INDEX_URL = "https://api.nuget.org/v3/index.json"
    REGISTRATION_RESOURCE_TYPE = "RegistrationsBaseUrl"
    DEFAULT_TARGET_FRAMEWORK = ".NETStandard,Version=v1.6"
    # Packages that are always dropped from the installable closure.
    BOOTSTRAP_EXCLUSIONS = [("NETStandard.Library", "1.6.1")]
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    MAX_CONNECTIONS = 100
    USER_AGENT = "NewGet/0.1"
    ENV_LOG_LEVEL = "NEWGET_LOG_LEVEL"
    ENV_CONFIG = "NEWGET_CONFIG"
    CONFIG_FILENAMES = [
        "newget.yml",
        "newget.yaml",
        os.path.join(os.path.expanduser("~"), ".config", "newget", "newget.yml"),
    ]


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML configuration file.

    Explicit ``path`` wins, then ``NEWGET_CONFIG``, then the default
    locations in ``Constants.CONFIG_FILENAMES``. A missing default file is
    not an error; a missing explicit file is.

    Returns:
        dict: Parsed mapping, empty when nothing was found.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    explicit = path or os.environ.get(Constants.ENV_CONFIG)
    candidates = [explicit] if explicit else list(Constants.CONFIG_FILENAMES)
    for candidate in candidates:
        if not os.path.isfile(candidate):
            if explicit:
                raise FileNotFoundError(candidate)
            continue
        with open(candidate, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{candidate}: top-level YAML value must be a mapping")
        logger.debug("Loaded configuration from %s", candidate)
        return data
    return {}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Apply YAML configuration on top of the built-in defaults.

    Recognized keys: ``service_index``, ``target_framework``,
    ``request_timeout``, ``max_connections`` and ``bootstrap_exclusions``
    (a list of ``{id, version}`` mappings). Unknown keys are ignored.

    Returns:
        dict: The raw mapping that was applied.
    """
    cfg = _load_yaml_config(path)
    if "service_index" in cfg:
        Constants.SERVICE_INDEX_URL = str(cfg["service_index"])
    if "target_framework" in cfg:
        Constants.DEFAULT_TARGET_FRAMEWORK = str(cfg["target_framework"])
    if "request_timeout" in cfg:
        Constants.REQUEST_TIMEOUT = int(cfg["request_timeout"])
    if "max_connections" in cfg:
        Constants.MAX_CONNECTIONS = int(cfg["max_connections"])
    if "bootstrap_exclusions" in cfg:
        exclusions = []
        for item in cfg["bootstrap_exclusions"] or []:
            if not isinstance(item, dict) or "id" not in item or "version" not in item:
                raise ValueError("bootstrap_exclusions entries need 'id' and 'version'")
            exclusions.append((str(item["id"]), str(item["version"])))
        Constants.BOOTSTRAP_EXCLUSIONS = exclusions
    return cfg
