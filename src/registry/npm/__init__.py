"""npm registry package.

Provides the async packument client and package.json loading.
"""

from .client import NpmRegistryClient, RegistryError, package_url
from .manifest import ManifestError, load_package_definition, normalize_package_definition

__all__ = [
    "NpmRegistryClient",
    "RegistryError",
    "package_url",
    "ManifestError",
    "load_package_definition",
    "normalize_package_definition",
]
