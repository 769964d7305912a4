"""Shared fixtures: an in-memory registry and Constants isolation."""

from typing import Dict, List, Optional

import pytest

from constants import Constants
from registry.npm.client import RegistryError
from versioning.models import PackageMetadata


def packument(name: str, versions: Dict[str, dict], latest: Optional[str] = None) -> dict:
    """Build an npm packument from ``{version: manifest_fields}``."""
    return {
        "name": name,
        "versions": {
            version: {"name": name, "version": version, **fields}
            for version, fields in versions.items()
        },
        "dist-tags": {"latest": latest or list(versions)[-1]} if versions else {},
    }


class FakeRegistry:
    """Metadata source serving packuments from a dict."""

    def __init__(self, packuments: Dict[str, dict], failures: Optional[Dict[str, int]] = None):
        self.packuments = packuments
        self.failures = failures or {}
        self.calls: List[str] = []

    async def get_metadata(self, name: str) -> PackageMetadata:
        self.calls.append(name)
        if name in self.failures:
            raise RegistryError(name, self.failures[name])
        if name not in self.packuments:
            raise RegistryError(name, 404)
        return PackageMetadata.from_json(name, self.packuments[name])


@pytest.fixture
def make_packument():
    return packument


@pytest.fixture
def fake_registry():
    """Factory: fake_registry({name: packument}, failures={name: status})."""
    def _factory(packuments, failures=None):
        return FakeRegistry(packuments, failures)
    return _factory


@pytest.fixture(autouse=True)
def restore_constants():
    """Undo config/CLI overrides applied to Constants during a test."""
    saved = {k: v for k, v in vars(Constants).items() if k.isupper()}
    yield
    for key, value in saved.items():
        setattr(Constants, key, value)
