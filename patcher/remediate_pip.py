"""pip remediation: patch packages installed in a Python environment."""

import logging

from .client import RemediationClient
from .config import Config
from .errors import PatchApplyError, PatcherError
from .models import Ecosystem
from .pip_service import PipService, is_pip
from .reporter import Reporter
from .schemas import Package, PackagePatch

logger = logging.getLogger(__name__)


class PipRemediation:
    """List installed packages, ask for patches, then report or install them."""

    def __init__(
        self,
        config: Config,
        python_path: str = "python",
        dry_run: bool = True,
        use_alias: bool = True,
        service: PipService | None = None,
        client: RemediationClient | None = None,
        reporter: Reporter | None = None,
    ):
        self.config = config
        self.python_path = python_path
        self.dry_run = dry_run
        self.use_alias = use_alias
        self.service = service or PipService(python_path, config.pkg_url, config.api_key, use_alias)
        self.client = client or RemediationClient(
            config.api_url, config.api_key, timeout=config.http_timeout
        )
        self.reporter = reporter or Reporter()

    async def run(self) -> None:
        logger.debug("Starting pip remediation (dry_run=%s)", self.dry_run)

        logger.debug("Collecting installed packages")
        packages = await self.service.list_packages()
        logger.debug("Collected %d packages", len(packages))

        logger.debug("Analyzing packages for vulnerabilities")
        response = await self.client.analyze_packages(
            Ecosystem.PYPI,
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
            self.reporter.report_pip_dry_run(response.patches, self.use_alias, self.config.pkg_url)
            return

        self.reporter.line()
        self.reporter.line(f"Applying {len(response.patches)} patches...")
        self.reporter.line()
        await self.apply_patches(response.patches)

        self.reporter.line()
        self.reporter.success(f"Successfully patched {len(response.patches)} packages!")

    async def apply_patches(self, patches: list[PackagePatch]) -> None:
        """Apply patches one by one, stopping at the first failure.

        Packages patched before the failure stay patched.

        Raises:
            PatchApplyError: Naming the failed patch and its position
        """
        total = len(patches)
        for i, patch in enumerate(patches, 1):
            target = patch.target(self.use_alias)
            self.reporter.line(
                f"[{i}/{total}] Patching {patch.package_name} ({patch.version} → {target.version})..."
            )
            logger.debug("Patch details: patch_name=%s use_alias=%s", target.name, self.use_alias)

            try:
                # pip cannot uninstall itself, so it gets upgraded in place
                if is_pip(patch.package_name):
                    await self.service.apply_patch_for_pip(patch)
                else:
                    await self.service.apply_patch(patch)
            except PatcherError as e:
                self.reporter.failure(f"Patch failed: {e}")
                raise PatchApplyError(i, total, patch.package_name, e) from e

            self.reporter.line(f"  ✓ Successfully patched {patch.package_name}")
            self.reporter.line()
