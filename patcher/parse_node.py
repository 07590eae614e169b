"""npm package-lock.json parsing and updating."""

import json
from typing import Any

from .errors import ManifestFormatError, NotYetImplementedError
from .models import Ecosystem, PackageInfo
from .parser import read_manifest

NODE_MODULES = "node_modules/"


def extract_package_name(pkg_path: str) -> str:
    """Extract the package name from a lock file ``packages`` key.

    Args:
        pkg_path: Key such as ``node_modules/@types/node`` or
            ``node_modules/a/node_modules/b``

    Returns:
        The name after the last ``node_modules/`` segment, or the path
        unchanged when it is not a ``node_modules`` path
    """
    if NODE_MODULES not in pkg_path:
        return pkg_path
    return pkg_path.rsplit(NODE_MODULES, 1)[1]


def _shape_error(lockfile: Any) -> str | None:
    """Describe the first way ``lockfile`` departs from the lock file schema."""
    if not isinstance(lockfile, dict):
        return "expected an object"
    packages = lockfile.get("packages")
    if packages is None:
        return None
    if not isinstance(packages, dict):
        return '"packages" must be an object'
    for pkg_path, entry in packages.items():
        if not isinstance(entry, dict):
            return f'packages["{pkg_path}"] must be an object'
        for field in ("version", "resolved"):
            if field in entry and not isinstance(entry[field], str):
                return f'packages["{pkg_path}"].{field} must be a string'
        for field in ("dependencies", "devDependencies"):
            if field in entry and not isinstance(entry[field], dict):
                return f'packages["{pkg_path}"].{field} must be an object'
    return None


class NpmParser:
    """Parser for npm lock files (lockfile v2/v3 ``packages`` map)."""

    file_patterns = ["package-lock.json", "yarn.lock", "pnpm-lock.yaml"]

    @property
    def ecosystem(self) -> Ecosystem:
        return Ecosystem.NPM

    def can_handle(self, filename: str) -> bool:
        return any(
            filename == pattern or filename.endswith(pattern)
            for pattern in self.file_patterns
        )

    def _check_supported(self, path: str) -> None:
        if path.endswith("yarn.lock"):
            raise NotYetImplementedError("yarn.lock parsing not yet implemented")
        if path.endswith("pnpm-lock.yaml"):
            raise NotYetImplementedError("pnpm-lock.yaml parsing not yet implemented")

    def _load(self, path: str) -> dict[str, Any]:
        self._check_supported(path)
        content = read_manifest(path)
        try:
            lockfile = json.loads(content)
        except json.JSONDecodeError as e:
            raise ManifestFormatError(f"failed to parse JSON in {path}: {e}") from e
        problem = _shape_error(lockfile)
        if problem:
            raise ManifestFormatError(f"unexpected lock file structure in {path}: {problem}")
        return lockfile

    def parse(self, path: str) -> list[PackageInfo]:
        """Parse a lock file into a de-duplicated package list.

        Args:
            path: Path to ``package-lock.json``

        Returns:
            One entry per distinct (name, version) pair, in lock file order
        """
        lockfile = self._load(path)
        packages = lockfile.get("packages") or {}

        root = packages.get("") or {}
        direct_deps = set(root.get("dependencies") or {})
        direct_dev_deps = set(root.get("devDependencies") or {})

        results: list[PackageInfo] = []
        seen: set[tuple[str, str]] = set()

        for pkg_path, entry in packages.items():
            if pkg_path == "" or not isinstance(entry, dict):
                continue

            name = extract_package_name(pkg_path)
            version = entry.get("version")
            if not name or not version:
                continue

            key = (name, version)
            if key in seen:
                continue
            seen.add(key)

            results.append(PackageInfo(
                name=name,
                version=version,
                version_constraint=version,  # lock files pin exact versions
                ecosystem=Ecosystem.NPM,
                direct=name in direct_deps or name in direct_dev_deps,
                dev=name in direct_dev_deps or bool(entry.get("dev", False)),
                location=pkg_path,
            ))

        return results

    def update(self, path: str, updates: dict[str, str]) -> str:
        """Return the lock file content with new versions applied.

        Every entry whose extracted name is in ``updates`` gets the new
        version and a matching ``resolved`` URL. Its ``integrity`` hash is
        dropped when the version changes.
        """
        lockfile = self._load(path)
        packages = lockfile.get("packages") or {}

        for pkg_path, entry in packages.items():
            if pkg_path == "" or not isinstance(entry, dict):
                continue

            new_version = updates.get(extract_package_name(pkg_path))
            if new_version is None:
                continue

            old_version = entry.get("version")
            entry["version"] = new_version

            resolved = entry.get("resolved")
            if resolved and old_version:
                entry["resolved"] = resolved.replace(old_version, new_version, 1)

            # the old tarball hash no longer matches; npm install fills it in again
            if old_version != new_version:
                entry.pop("integrity", None)

        return json.dumps(lockfile, indent=2, ensure_ascii=False) + "\n"

    def validate(self, content: str) -> bool:
        try:
            lockfile = json.loads(content)
        except json.JSONDecodeError:
            return False
        return _shape_error(lockfile) is None
