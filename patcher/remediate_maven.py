"""Maven remediation: patch dependency versions in pom.xml."""

import logging
import os

from .client import RemediationClient
from .config import Config
from .errors import ManifestNotFoundError, ValidationFailedError
from .models import Ecosystem
from .parse_maven import MavenParser
from .parser import Parser, write_manifest
from .reporter import Reporter
from .schemas import Package, PackagePatch

logger = logging.getLogger(__name__)


class MavenRemediation:
    """Parse a POM, ask for patches, then report or rewrite the file."""

    def __init__(
        self,
        config: Config,
        file_path: str = "pom.xml",
        dry_run: bool = True,
        parser: Parser | None = None,
        client: RemediationClient | None = None,
        reporter: Reporter | None = None,
    ):
        self.config = config
        self.file_path = file_path
        self.dry_run = dry_run
        self.parser = parser or MavenParser()
        self.client = client or RemediationClient(
            config.api_url, config.api_key, timeout=config.http_timeout
        )
        self.reporter = reporter or Reporter()

    async def run(self) -> None:
        """Run the remediation workflow.

        Raises:
            PatcherError: On the first failure; the file is only written
                after every patch has been applied and validated
        """
        logger.debug("Starting Maven remediation (file=%s, dry_run=%s)", self.file_path, self.dry_run)

        if not os.path.exists(self.file_path):
            raise ManifestNotFoundError(f"file not found: {self.file_path}")
        if not self.parser.can_handle(self.file_path):
            logger.warning("%s is not named pom.xml, parsing it as a POM anyway", self.file_path)

        logger.debug("Parsing %s", self.file_path)
        packages = self.parser.parse(self.file_path)
        logger.debug("Parsed %d packages", len(packages))

        if not packages:
            self.reporter.line()
            self.reporter.line(f"No packages found in {self.file_path}")
            return

        logger.debug("Analyzing packages for vulnerabilities")
        response = await self.client.analyze_packages(
            Ecosystem.MAVEN,
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
                response.patches, self.file_path, next_step="mvn clean install"
            )
            return

        self.reporter.line()
        self.reporter.line(f"Applying {len(response.patches)} patches to {self.file_path}...")
        self.reporter.line()
        self.apply_patches(response.patches)

        self.reporter.line()
        self.reporter.success(
            f"Successfully updated {self.file_path} with {len(response.patches)} patches!"
        )
        self.reporter.next_steps(self.file_path, "mvn clean install")

    def apply_patches(self, patches: list[PackagePatch]) -> None:
        """Apply every patch to one in-memory copy, validate, then write once."""
        updates: dict[str, str] = {}
        for patch in patches:
            if not patch.patch.version:
                logger.warning("No patched version for %s, skipping", patch.package_name)
                continue
            updates[patch.package_name] = patch.patch.version
            self.reporter.line(f"  - {patch.package_name}: {patch.version} → {patch.patch.version}")

        logger.debug("Updating %s (%d updates)", self.file_path, len(updates))
        content = self.parser.update(self.file_path, updates)

        if not self.parser.validate(content):
            raise ValidationFailedError(f"updated content of {self.file_path} is not valid XML")

        write_manifest(self.file_path, content)
