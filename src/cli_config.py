"""CLI configuration overrides for runtime tunables.

Applies, in increasing precedence: default YAML locations, an explicit
``--config`` file, then CLI flags. Config problems are logged and never break
the CLI.
"""

from __future__ import annotations

import json
import logging
import os

from constants import Constants, _load_yaml_config, apply_config
from versioning.models import ResolveOptions

logger = logging.getLogger(__name__)


def _load_explicit_config(path: str) -> dict:
    """Read a YAML or JSON config file given on the command line."""
    if not os.path.isfile(path):
        logger.warning("Config file not found: %s", path)
        return {}
    if path.lower().endswith(".json"):
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read config file %s: %s", path, exc)
            return {}
        return data if isinstance(data, dict) else {}
    return _load_yaml_config(path)


def apply_config_overrides(args) -> None:
    """Load configuration files and apply CLI overrides onto Constants."""
    path = getattr(args, "CONFIG", None)
    if isinstance(path, str) and path.strip():
        cfg = _load_explicit_config(path.strip())
    else:
        cfg = _load_yaml_config()
    apply_config(cfg)

    registry_url = getattr(args, "REGISTRY_URL", None)
    if isinstance(registry_url, str) and registry_url.strip():
        Constants.REGISTRY_URL_NPM = registry_url.strip().rstrip("/")
    if getattr(args, "NO_VULNS", False):
        Constants.VULNS_ENABLED = False


def resolve_options_from_args(args) -> ResolveOptions:
    """Build ResolveOptions, falling back to configured defaults for unset flags."""
    include_dev = getattr(args, "INCLUDE_DEV", None)
    include_peer = getattr(args, "INCLUDE_PEER", None)
    max_depth = getattr(args, "MAX_DEPTH", None)
    return ResolveOptions(
        include_dev=Constants.DEFAULT_INCLUDE_DEV if include_dev is None else include_dev,
        include_peer=Constants.DEFAULT_INCLUDE_PEER if include_peer is None else include_peer,
        max_depth=Constants.DEFAULT_MAX_DEPTH if max_depth is None else max_depth,
    )
