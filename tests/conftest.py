"""Pytest configuration and fixtures."""

import io
from unittest.mock import AsyncMock

import pytest
from rich.console import Console

from patcher.config import Config
from patcher.reporter import Reporter
from patcher.schemas import AnalyzePackagesResponse, PackagePatch, PatchInfo


@pytest.fixture
def config():
    """Configuration with a test API key."""
    return Config(ROOTIO_API_KEY="test-key", ROOTIO_API_URL="https://api.root.io")


@pytest.fixture
def reporter():
    """Reporter writing to an in-memory console; read with ``reporter.output()``."""
    buffer = io.StringIO()
    rep = Reporter(console=Console(file=buffer, width=200))
    rep.output = buffer.getvalue
    return rep


@pytest.fixture
def make_patch():
    """Factory for remediation API patches."""
    def _make(name, current, fixed, alias=None, cves=None):
        return PackagePatch(
            package_name=name,
            version=current,
            patch=PatchInfo(name=name, version=fixed),
            patch_alias=PatchInfo(name=alias or f"rootio-{name}", version=f"{fixed}+root.io"),
            cve_ids=cves or [],
        )
    return _make


@pytest.fixture
def mock_client():
    """Remediation client returning no patches unless reconfigured."""
    client = AsyncMock()
    client.analyze_packages.return_value = AnalyzePackagesResponse()
    return client


@pytest.fixture
def sample_lockfile():
    """package-lock.json (v3) with direct, dev, nested and scoped packages."""
    return """{
  "name": "test-project",
  "version": "1.0.0",
  "lockfileVersion": 3,
  "requires": true,
  "packages": {
    "": {
      "name": "test-project",
      "version": "1.0.0",
      "dependencies": {
        "express": "^4.18.0",
        "lodash": "^4.17.20"
      },
      "devDependencies": {
        "@types/node": "^20.0.0"
      }
    },
    "node_modules/@types/node": {
      "version": "20.1.0",
      "resolved": "https://registry.npmjs.org/@types/node/-/node-20.1.0.tgz",
      "dev": true
    },
    "node_modules/express": {
      "version": "4.18.2",
      "resolved": "https://registry.npmjs.org/express/-/express-4.18.2.tgz",
      "dependencies": {
        "qs": "6.11.0"
      }
    },
    "node_modules/express/node_modules/qs": {
      "version": "6.11.0",
      "resolved": "https://registry.npmjs.org/qs/-/qs-6.11.0.tgz"
    },
    "node_modules/lodash": {
      "version": "4.17.20",
      "resolved": "https://registry.npmjs.org/lodash/-/lodash-4.17.20.tgz"
    },
    "node_modules/qs": {
      "version": "6.11.0",
      "resolved": "https://registry.npmjs.org/qs/-/qs-6.11.0.tgz"
    },
    "node_modules/jest-util": {
      "version": "29.0.0",
      "dev": true
    },
    "node_modules/linked-pkg": {
      "resolved": "packages/linked-pkg",
      "link": true
    }
  }
}
"""


@pytest.fixture
def sample_pom():
    """pom.xml with a property-backed version, a literal version and a managed one."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
    <modelVersion>4.0.0</modelVersion>
    <groupId>com.example</groupId>
    <artifactId>test-project</artifactId>
    <version>1.0.0</version>

    <properties>
        <log4j.version>2.17.0</log4j.version>
        <!-- keep in sync with the BOM -->
        <spring.version>5.3.20</spring.version>
    </properties>

    <dependencies>
        <dependency>
            <groupId>org.apache.logging.log4j</groupId>
            <artifactId>log4j-core</artifactId>
            <version>${log4j.version}</version>
        </dependency>
        <dependency>
            <groupId>junit</groupId>
            <artifactId>junit</artifactId>
            <version>4.12</version>
            <scope>test</scope>
        </dependency>
        <dependency>
            <groupId>org.hamcrest</groupId>
            <artifactId>hamcrest-core</artifactId>
            <version>4.12</version>
        </dependency>
        <dependency>
            <groupId>org.springframework</groupId>
            <artifactId>spring-core</artifactId>
        </dependency>
    </dependencies>
</project>
"""


@pytest.fixture
def lockfile_path(tmp_path, sample_lockfile):
    path = tmp_path / "package-lock.json"
    path.write_text(sample_lockfile)
    return path


@pytest.fixture
def pom_path(tmp_path, sample_pom):
    path = tmp_path / "pom.xml"
    path.write_text(sample_pom)
    return path
