"""Terminal output for remediation runs."""

from rich.console import Console

from .pip_service import is_pip, redacted_index_url
from .schemas import PackagePatch


def format_cves(cve_ids: list[str]) -> str:
    return ", ".join(cve_ids) if cve_ids else "none listed"


class Reporter:
    """Prints progress and dry-run previews to stdout."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def line(self, text: str = "") -> None:
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)

    def success(self, text: str) -> None:
        self.line(f"✓ {text}")

    def failure(self, text: str) -> None:
        self.line(f"✗ {text}")

    def no_patches(self) -> None:
        self.line()
        self.line("No patches needed - all packages are up to date!")

    def _header(self, intro: str) -> None:
        self.line()
        self.line("=== DRY-RUN MODE ===")
        self.line(intro)
        self.line()

    def report_pip_dry_run(self, patches: list[PackagePatch], use_alias: bool, pkg_url: str) -> None:
        """Show the pip commands an apply run would execute."""
        self._header("The following operations would be performed:")
        index_url = redacted_index_url(pkg_url)
        patch_type = "Aliased" if use_alias else "Non-Aliased"

        for i, patch in enumerate(patches, 1):
            target = patch.target(use_alias)
            spec = f"{target.name}=={target.version}"
            self.line(f"{i}. Package: {patch.package_name} @ {patch.version}")
            self.line(f"   Patch ({patch_type}): {target.name} @ {target.version}")
            self.line(f"   CVEs Fixed: {format_cves(patch.cve_ids)}")
            self.line("   Commands:")
            if is_pip(patch.package_name):
                self.line(f"     pip install --no-deps --upgrade --index-url {index_url} {spec}")
            else:
                self.line(f"     pip uninstall -y {patch.package_name}")
                self.line(f"     pip install --no-deps --index-url {index_url} {spec}")
            self.line()

        self.line("To apply these patches, run with --no-dry-run")
        if use_alias:
            self.line("To use original package names instead of aliases, add --no-use-alias")
        else:
            self.line("To use aliased package names (recommended), add --use-alias")

    def report_file_dry_run(
        self,
        patches: list[PackagePatch],
        file_path: str,
        next_step: str,
        note: str | None = None,
    ) -> None:
        """Show the version changes an apply run would write to a manifest."""
        self._header(f"The following packages in {file_path} would be updated:")

        for i, patch in enumerate(patches, 1):
            self.line(f"{i}. Package: {patch.package_name}")
            self.line(f"   Current version: {patch.version}")
            self.line(f"   Patched version: {patch.patch.version}")
            if patch.cve_ids:
                self.line(f"   CVEs Fixed: {format_cves(patch.cve_ids)}")
            self.line()

        if note:
            self.line(note)
            self.line()
        self.line("To apply these patches:")
        self.line("  1. Run again with --no-dry-run")
        self.line(f"  2. Then run: {next_step}")

    def next_steps(self, file_path: str, command: str) -> None:
        self.line()
        self.line("Next steps:")
        self.line(f"  1. Review the changes in {file_path}")
        self.line(f"  2. Run: {command}")
        self.line("  3. Test your application")
