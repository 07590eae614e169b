"""npm remediation: patch locked versions in the lock file."""

import json
import logging
import os

from .client import RemediationClient
from .config import Config
from .detect import lock_file_for, override_field, package_manager_for
from .errors import ManifestFormatError, ManifestNotFoundError, ValidationFailedError
from .models import Ecosystem
from .parse_node import NpmParser
from .parser import Parser, read_manifest, write_manifest
from .reporter import Reporter
from .schemas import Package, PackagePatch

logger = logging.getLogger(__name__)


class NpmRemediation:
    """Parse a lock file, ask for patches, then report or rewrite it."""

    def __init__(
        self,
        config: Config,
        package_manager: str | None = None,
        dry_run: bool = True,
        lock_file: str | None = None,
        parser: Parser | None = None,
        client: RemediationClient | None = None,
        reporter: Reporter | None = None,
    ):
        """Initialize npm remediation.

        Args:
            config: Loaded configuration
            package_manager: ``npm``, ``yarn`` or ``pnpm``; inferred from
                ``lock_file`` when omitted
            dry_run: Only report what would change
            lock_file: Lock file path; defaults to the manager's lock file
                in the current directory
        """
        if lock_file:
            self.lock_path = lock_file
            self.package_manager = package_manager or package_manager_for(lock_file)
        else:
            self.package_manager = package_manager or "npm"
            self.lock_path = lock_file_for(self.package_manager)

        self.config = config
        self.dry_run = dry_run
        self.parser = parser or NpmParser()
        self.client = client or RemediationClient(
            config.api_url, config.api_key, timeout=config.http_timeout
        )
        self.reporter = reporter or Reporter()

    @property
    def package_json_path(self) -> str:
        return os.path.join(os.path.dirname(self.lock_path), "package.json")

    async def run(self) -> None:
        """Run the remediation workflow.

        Raises:
            PatcherError: On the first failure; nothing is written unless
                every updated file validates
        """
        logger.debug(
            "Starting npm remediation (package_manager=%s, lock_file=%s, dry_run=%s)",
            self.package_manager, self.lock_path, self.dry_run,
        )

        if not os.path.exists(self.lock_path):
            raise ManifestNotFoundError(
                f"lock file not found: {self.lock_path} (package manager: {self.package_manager})"
            )
        if not self.parser.can_handle(self.lock_path):
            logger.warning("%s is not a known lock file name, parsing it as package-lock.json", self.lock_path)

        logger.debug("Parsing lock file %s", self.lock_path)
        packages = self.parser.parse(self.lock_path)
        logger.debug("Parsed %d packages", len(packages))

        if not packages:
            self.reporter.line()
            self.reporter.line(f"No packages found in {self.lock_path}")
            return

        logger.debug("Analyzing packages for vulnerabilities")
        response = await self.client.analyze_packages(
            Ecosystem.NPM,
            [Package(name=pkg.name, version=pkg.version) for pkg in packages],
        )
        logger.debug(
            "Vulnerability analysis complete: %d patches available, %d packages skipped",
            len(response.patches), len(response.skipped),
        )

        if not response.patches:
            self.reporter.no_patches()
            return

        if self.dry_run:
            logger.debug("DRY-RUN MODE: no changes will be made")
            self.reporter.report_file_dry_run(
                response.patches,
                self.lock_path,
                next_step=f"{self.package_manager} install",
                note=self._override_note(),
            )
            return

        self.reporter.line()
        self.reporter.line(f"Applying {len(response.patches)} patches to {self.lock_path}...")
        self.reporter.line()
        self.apply_patches(response.patches)

        self.reporter.line()
        self.reporter.success(
            f"Successfully updated {self.lock_path} with {len(response.patches)} patches!"
        )
        self.reporter.next_steps(self.lock_path, f"{self.package_manager} install")

    def _override_note(self) -> str | None:
        if not os.path.exists(self.package_json_path):
            return None
        field = override_field(self.package_manager)
        if self.package_manager == "pnpm":
            field = f"pnpm.{field}"
        if self.package_manager == "npm":
            return (
                f"These versions will also be pinned in {self.package_json_path}: direct "
                f'dependencies by their declared version, the rest under "{field}"'
            )
        return f'These versions will also be pinned in {self.package_json_path} under "{field}"'

    def apply_patches(self, patches: list[PackagePatch]) -> None:
        """Rewrite the lock file and package.json, validating both before any write."""
        updates: dict[str, str] = {}
        for patch in patches:
            if not patch.patch.version:
                logger.warning("No patched version for %s, skipping", patch.package_name)
                continue
            updates[patch.package_name] = patch.patch.version
            self.reporter.line(f"  - {patch.package_name}: {patch.version} → {patch.patch.version}")

        logger.debug("Updating %s (%d updates)", self.lock_path, len(updates))
        content = self.parser.update(self.lock_path, updates)
        if not self.parser.validate(content):
            raise ValidationFailedError(f"updated content of {self.lock_path} is not valid JSON")

        package_json = self._with_overrides(updates)

        # package.json goes first; a failed lock write leaves it pinning the patched versions
        if package_json is not None:
            write_manifest(self.package_json_path, package_json)
        write_manifest(self.lock_path, content)

    def _with_overrides(self, updates: dict[str, str]) -> str | None:
        """Return package.json content pinning ``updates``.

        npm rejects an override that conflicts with a direct dependency's
        declared range (EOVERRIDE), so for npm the declared spec of a direct
        dependency is set to the patched version instead. Everything else is
        recorded as an override.

        Returns None when there is no package.json next to the lock file.
        """
        path = self.package_json_path
        if not os.path.exists(path):
            logger.debug("No package.json at %s, skipping overrides", path)
            return None

        try:
            data = json.loads(read_manifest(path))
        except json.JSONDecodeError as e:
            raise ManifestFormatError(f"failed to parse {path}: {e}") from e
        if not isinstance(data, dict):
            raise ManifestFormatError(f"failed to parse {path}: expected an object")

        pending = dict(updates)
        if self.package_manager == "npm":
            for dep_field in ("dependencies", "devDependencies"):
                declared = data.get(dep_field)
                if not isinstance(declared, dict):
                    continue
                for name in list(pending):
                    if name in declared:
                        declared[name] = pending.pop(name)
                        logger.debug("Set %s.%s to %s in %s", dep_field, name, declared[name], path)

        if pending:
            section = data
            if self.package_manager == "pnpm":
                section = data.get("pnpm")
                if not isinstance(section, dict):
                    section = data["pnpm"] = {}

            field = override_field(self.package_manager)
            overrides = section.get(field)
            if not isinstance(overrides, dict):
                overrides = section[field] = {}
            overrides.update(pending)
            logger.debug("Recording %d overrides in %s under %s", len(pending), path, field)

        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
