"""Core data models for rootio-patcher."""

from dataclasses import dataclass
from enum import Enum


class Ecosystem(str, Enum):
    """Package ecosystems understood by the remediation API."""

    PYPI = "pypi"
    NPM = "npm"
    MAVEN = "maven"


@dataclass
class PackageInfo:
    """A single package found in a manifest or lock file."""

    name: str
    version: str
    version_constraint: str = ""
    ecosystem: Ecosystem = Ecosystem.NPM
    direct: bool = False
    dev: bool = False
    location: str | None = None


@dataclass
class InstalledPackage:
    """A package installed in a Python environment (from ``pip list``)."""

    name: str
    version: str
    location: str | None = None
