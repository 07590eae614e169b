"""Test that project structure is correct and modules can be imported."""

import patcher.client
import patcher.parse_maven
import patcher.parse_node
import patcher.remediate_maven
import patcher.remediate_npm
import patcher.remediate_pip
from patcher.errors import PatcherError, RemoteServiceError
from patcher.models import Ecosystem, PackageInfo
from patcher.parse_maven import MavenParser
from patcher.parse_node import NpmParser
from patcher.parser import Parser


def test_patcher_modules_importable():
    """Ensure patcher modules can be imported."""
    # This will fail if modules have syntax errors or missing dependencies
    assert hasattr(patcher.client, "RemediationClient")
    assert hasattr(patcher.parse_node, "NpmParser")
    assert hasattr(patcher.parse_maven, "MavenParser")
    assert hasattr(patcher.remediate_pip, "PipRemediation")
    assert hasattr(patcher.remediate_npm, "NpmRemediation")
    assert hasattr(patcher.remediate_maven, "MavenRemediation")


def test_model_creation():
    """Test that basic models can be instantiated."""
    pkg = PackageInfo(name="lodash", version="4.17.20")
    assert pkg.ecosystem == Ecosystem.NPM
    assert pkg.version_constraint == ""
    assert not pkg.direct and not pkg.dev


def test_ecosystem_wire_names():
    assert [e.value for e in Ecosystem] == ["pypi", "npm", "maven"]


def test_parsers_share_contract():
    parsers: list[Parser] = [NpmParser(), MavenParser()]
    assert [p.ecosystem for p in parsers] == [Ecosystem.NPM, Ecosystem.MAVEN]


def test_errors_share_base():
    assert issubclass(RemoteServiceError, PatcherError)
