"""Maven pom.xml parsing and format-preserving updates."""

import logging
import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from .errors import ManifestFormatError
from .models import Ecosystem, PackageInfo
from .parser import read_manifest

logger = logging.getLogger(__name__)

COMMENT = r"<!--.*?-->"
# Comments are matched first so anything inside them is passed over
PROPERTIES_BLOCK = re.compile(
    rf"{COMMENT}|<properties(?:\s[^>]*)?(?<!/)>.*?</properties\s*>", re.DOTALL
)


@dataclass
class PomDependency:
    """A ``<dependency>`` element as written in the POM."""

    group_id: str
    artifact_id: str
    version: str
    scope: str = ""

    @property
    def key(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"


@dataclass
class Pom:
    """The parts of a POM needed for remediation."""

    properties: dict[str, str]
    dependencies: list[PomDependency]


def _local(tag: str) -> str:
    """Strip an XML namespace from a tag name."""
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ET.Element, name: str) -> str:
    for child in element:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return ""


def _property_name(value: str) -> str | None:
    """Return ``foo.bar`` for ``${foo.bar}``, otherwise None."""
    if value.startswith("${") and value.endswith("}"):
        return value[2:-1]
    return None


def resolve_property(value: str, properties: dict[str, str]) -> str:
    """Resolve a ``${name}`` reference against POM properties.

    Unknown properties are returned as the literal reference.
    """
    name = _property_name(value) if value else None
    if name is None:
        return value
    return properties.get(name, value)


class MavenParser:
    """Parser for Maven ``pom.xml`` files."""

    file_patterns = ["pom.xml"]

    @property
    def ecosystem(self) -> Ecosystem:
        return Ecosystem.MAVEN

    def can_handle(self, filename: str) -> bool:
        return os.path.basename(filename) in self.file_patterns

    def _decode(self, content: str, path: str) -> Pom:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise ManifestFormatError(f"failed to parse XML in {path}: {e}") from e
        if _local(root.tag) != "project":
            raise ManifestFormatError(
                f"failed to parse XML in {path}: expected <project>, got <{_local(root.tag)}>"
            )

        properties: dict[str, str] = {}
        dependencies: list[PomDependency] = []

        for section in root:
            name = _local(section.tag)
            if name == "properties":
                for prop in section:
                    if isinstance(prop.tag, str):
                        properties[_local(prop.tag)] = (prop.text or "").strip()
            elif name == "dependencies":
                for dep in section:
                    if not isinstance(dep.tag, str) or _local(dep.tag) != "dependency":
                        continue
                    dependencies.append(PomDependency(
                        group_id=_child_text(dep, "groupId"),
                        artifact_id=_child_text(dep, "artifactId"),
                        version=_child_text(dep, "version"),
                        scope=_child_text(dep, "scope"),
                    ))

        return Pom(properties=properties, dependencies=dependencies)

    def parse(self, path: str) -> list[PackageInfo]:
        """Parse the project's declared dependencies.

        Dependencies without a version after property resolution are managed
        by a parent or BOM and are left out.
        """
        pom = self._decode(read_manifest(path), path)

        packages: list[PackageInfo] = []
        seen: set[tuple[str, str]] = set()

        for dep in pom.dependencies:
            if not dep.group_id or not dep.artifact_id:
                continue

            version = resolve_property(dep.version, pom.properties)
            if not version:
                continue

            if (dep.key, version) in seen:
                continue
            seen.add((dep.key, version))

            packages.append(PackageInfo(
                name=dep.key,
                version=version,
                version_constraint=version,
                ecosystem=Ecosystem.MAVEN,
                direct=True,  # no transitive closure without full resolution
                dev=dep.scope == "test",
            ))

        return packages

    def update(self, path: str, updates: dict[str, str]) -> str:
        """Rewrite dependency versions in the raw POM text.

        Property-backed versions are changed at the property definition;
        literal versions are changed inside their own ``<dependency>`` block.
        Comments, ordering and whitespace elsewhere are left as they are.
        """
        content = read_manifest(path)
        pom = self._decode(content, path)

        handled: set[tuple[str, str]] = set()
        for dep in pom.dependencies:
            if not dep.group_id or not dep.artifact_id:
                continue
            new_version = updates.get(dep.key)
            if new_version is None or (dep.key, dep.version) in handled:
                continue
            handled.add((dep.key, dep.version))

            prop = _property_name(dep.version)
            if prop is not None:
                if prop not in pom.properties:
                    logger.warning(
                        "Property %s for %s is not defined in %s; version left unchanged",
                        prop, dep.key, path,
                    )
                    continue
                content, count = self._replace_property(content, prop, new_version)
            else:
                content, count = self._replace_dependency_version(
                    content, dep.group_id, dep.artifact_id, dep.version, new_version
                )

            if count == 0:
                logger.warning(
                    "No version element matched for %s in %s; version left unchanged",
                    dep.key, path,
                )

        missing = set(updates) - {key for key, _ in handled}
        for name in sorted(missing):
            logger.warning("Dependency %s not declared in %s", name, path)

        return content

    def _replace_property(self, content: str, prop: str, new_version: str) -> tuple[str, int]:
        pattern = re.compile(
            rf"{COMMENT}|(<{re.escape(prop)}\s*>)[^<]*(</{re.escape(prop)}\s*>)", re.DOTALL
        )
        total = 0

        def _sub_element(m: re.Match) -> str:
            nonlocal total
            if m.group(1) is None:
                return m.group(0)
            total += 1
            return m.group(1) + new_version + m.group(2)

        def _sub_block(block: re.Match) -> str:
            if block.group(0).startswith("<!--"):
                return block.group(0)
            return pattern.sub(_sub_element, block.group(0))

        return PROPERTIES_BLOCK.sub(_sub_block, content), total

    def _replace_dependency_version(
        self, content: str, group_id: str, artifact_id: str, old_version: str, new_version: str
    ) -> tuple[str, int]:
        # Only matches groupId, artifactId, version in that order.
        pattern = re.compile(
            rf"{COMMENT}|"
            rf"(<dependency\s*>\s*<groupId>\s*{re.escape(group_id)}\s*</groupId>"
            rf"\s*<artifactId>\s*{re.escape(artifact_id)}\s*</artifactId>"
            rf"\s*<version>\s*){re.escape(old_version)}(\s*</version>)",
            re.DOTALL,
        )
        total = 0

        def _sub(m: re.Match) -> str:
            nonlocal total
            if m.group(1) is None:
                return m.group(0)
            total += 1
            return m.group(1) + new_version + m.group(2)

        return pattern.sub(_sub, content), total

    def validate(self, content: str) -> bool:
        try:
            ET.fromstring(content)
        except ET.ParseError:
            return False
        return True
