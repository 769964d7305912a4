"""package.json loading and normalization."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Mapping, Optional, Tuple

from constants import Constants
from versioning.models import PackageDefinition

logger = logging.getLogger(__name__)


class ManifestError(ValueError):
    """Raised when a manifest file cannot be read or parsed."""


def _extract_dependencies(source: Mapping[str, Any], key: str) -> Dict[str, str]:
    value = source.get(key)
    if not isinstance(value, Mapping):
        return {}
    return {str(name): spec for name, spec in value.items() if isinstance(spec, str)}


def normalize_package_definition(data: Mapping[str, Any]) -> PackageDefinition:
    """Keep only the string-valued dependency sections of a manifest."""
    return PackageDefinition(
        dependencies=_extract_dependencies(data, "dependencies"),
        dev_dependencies=_extract_dependencies(data, "devDependencies"),
    )


def sanitize_package_name(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def load_package_definition(path: str) -> Tuple[PackageDefinition, Dict[str, Any]]:
    """Read a package.json file.

    Args:
        path: File path, or a directory containing package.json.

    Returns:
        Tuple of (normalized definition, raw manifest dict).

    Raises:
        ManifestError: if the file is missing, unreadable or not a JSON object.
    """
    if os.path.isdir(path):
        path = os.path.join(path, Constants.PACKAGE_JSON_FILE)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except FileNotFoundError as exc:
        raise ManifestError(f"File not found: {path}") from exc
    except OSError as exc:
        raise ManifestError(f"Could not read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Could not parse {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ManifestError(f"{path} does not contain a JSON object")

    definition = normalize_package_definition(raw)
    logger.debug(
        "Loaded manifest %s: %d dependencies, %d devDependencies",
        path,
        len(definition.dependencies),
        len(definition.dev_dependencies),
    )
    return definition, raw
