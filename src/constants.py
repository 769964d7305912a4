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
    RESOLUTION_ERROR = 2


class ReportFormats(Enum):
    """Report formats supported by the CLI.

    Args:
        Enum (string): Report formats supported by the CLI.
    """

    JSON = "json"
    MARKDOWN = "markdown"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    PACKAGE_JSON_FILE = "package.json"
    LOG_FORMAT = "[%(levelname)s] %(message)s"

    # Resolution defaults
    DEFAULT_MAX_DEPTH = 6
    DEFAULT_INCLUDE_DEV = False
    DEFAULT_INCLUDE_PEER = True

    # Reporting
    REPORT_FORMAT_VERSION = "1.0.0"
    REPORT_TOP_ISSUES = 12
    REPORT_PATH_SEPARATOR = " › "
    REPORT_DEFAULT_BASENAME = "pkglens-report"

    # Vulnerability lookups (OSV.dev)
    VULNS_ENABLED = True
    OSV_QUERY_URL = "https://api.osv.dev/v1/query"
    OSV_MIN_SEVERITY = "CRITICAL"

    ENV_CONFIG_PATH = "PKGLENS_CONFIG"


def _config_search_paths() -> list:
    """Return candidate config paths in precedence order."""
    paths = []
    env_path = os.environ.get(Constants.ENV_CONFIG_PATH)
    if env_path:
        paths.append(env_path)
    paths.extend([
        os.path.join(os.getcwd(), "pkglens.yml"),
        os.path.join(os.getcwd(), "pkglens.yaml"),
        os.path.join(os.path.expanduser("~"), ".config", "pkglens", "pkglens.yml"),
    ])
    return paths


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first available YAML config file.

    Args:
        path: Explicit file to read; when None the default locations are searched.

    Returns:
        dict: Parsed configuration, or an empty dict when nothing usable is found.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    candidates = [path] if path else _config_search_paths()
    for candidate in candidates:
        if not candidate or not os.path.isfile(candidate):
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Could not read config file %s: %s", candidate, exc)
            continue
        if isinstance(data, dict):
            logger.debug("Loaded configuration from %s", candidate)
            return data
        logger.warning("Ignoring config file %s: top-level value is not a mapping", candidate)
    return {}


def apply_config(cfg: Dict[str, Any]) -> None:
    """Apply known configuration keys onto Constants.

    Recognized layout::

        registry:
          url: https://registry.npmjs.org
          timeout: 30
        resolve:
          max_depth: 6
          include_dev: false
          include_peer: true
        vulnerabilities:
          enabled: true
          min_severity: CRITICAL
          osv_url: https://api.osv.dev/v1/query
    """
    if not isinstance(cfg, dict):
        return

    registry = cfg.get("registry")
    if isinstance(registry, dict):
        if isinstance(registry.get("url"), str) and registry["url"].strip():
            Constants.REGISTRY_URL_NPM = registry["url"].strip().rstrip("/")
        if isinstance(registry.get("timeout"), (int, float)) and registry["timeout"] > 0:
            Constants.REQUEST_TIMEOUT = registry["timeout"]

    resolve = cfg.get("resolve")
    if isinstance(resolve, dict):
        if isinstance(resolve.get("max_depth"), int) and resolve["max_depth"] >= 0:
            Constants.DEFAULT_MAX_DEPTH = resolve["max_depth"]
        if isinstance(resolve.get("include_dev"), bool):
            Constants.DEFAULT_INCLUDE_DEV = resolve["include_dev"]
        if isinstance(resolve.get("include_peer"), bool):
            Constants.DEFAULT_INCLUDE_PEER = resolve["include_peer"]

    vulns = cfg.get("vulnerabilities")
    if isinstance(vulns, dict):
        if isinstance(vulns.get("enabled"), bool):
            Constants.VULNS_ENABLED = vulns["enabled"]
        if isinstance(vulns.get("min_severity"), str) and vulns["min_severity"].strip():
            Constants.OSV_MIN_SEVERITY = vulns["min_severity"].strip().upper()
        if isinstance(vulns.get("osv_url"), str) and vulns["osv_url"].strip():
            Constants.OSV_QUERY_URL = vulns["osv_url"].strip()
