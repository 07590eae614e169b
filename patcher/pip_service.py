"""pip operations: listing installed packages and applying patches."""

import asyncio
import json
import logging
from urllib.parse import quote, urlsplit, urlunsplit

from packaging.utils import canonicalize_name

from .errors import CommandError, ManifestFormatError
from .models import InstalledPackage
from .schemas import PackagePatch

logger = logging.getLogger(__name__)

INDEX_PATH = "/pypi/simple/"
API_KEY_PLACEHOLDER = "<your_api_key>"


def is_pip(package_name: str) -> bool:
    """pip itself has to be upgraded in place rather than reinstalled."""
    return canonicalize_name(package_name) == "pip"


def build_index_url(pkg_url: str, api_key: str) -> str:
    """Build the authenticated package index URL.

    Args:
        pkg_url: Package registry base URL, e.g. ``https://pkg.root.io``
        api_key: Credential embedded as the password for user ``root``

    Returns:
        ``scheme://root:<api_key>@host/pypi/simple/``
    """
    parts = urlsplit(pkg_url)
    if not parts.scheme or not parts.hostname:
        logger.warning("Package URL %s has no scheme or host, using it as-is", pkg_url)
        return pkg_url.rstrip("/") + INDEX_PATH
    # netloc keeps IPv6 brackets and the port; any existing userinfo is replaced
    host = parts.netloc.rsplit("@", 1)[-1]
    userinfo = f"{quote('root', safe='')}:{quote(api_key, safe='')}"
    return urlunsplit((parts.scheme, f"{userinfo}@{host}", INDEX_PATH, "", ""))


def redacted_index_url(pkg_url: str) -> str:
    """The index URL with ``<your_api_key>`` in place of the credential, for display."""
    return build_index_url(pkg_url, API_KEY_PLACEHOLDER).replace(
        quote(API_KEY_PLACEHOLDER, safe=""), API_KEY_PLACEHOLDER
    )


class PipService:
    """Runs ``python -m pip`` for a given interpreter."""

    def __init__(self, python_path: str, pkg_url: str, api_key: str, use_alias: bool):
        self.python_path = python_path
        self.pkg_url = pkg_url
        self.api_key = api_key
        self.use_alias = use_alias

    def index_url(self) -> str:
        return build_index_url(self.pkg_url, self.api_key)

    def redacted_index_url(self) -> str:
        return redacted_index_url(self.pkg_url)

    async def _run(self, *args: str, combined: bool = True) -> str:
        """Run ``python -m pip <args>`` and return its output.

        Raises:
            CommandError: If pip exits with a non-zero status
        """
        shown = " ".join(args).replace(self.index_url(), self.redacted_index_url())
        logger.debug("Running %s -m pip %s", self.python_path, shown)

        try:
            process = await asyncio.create_subprocess_exec(
                self.python_path, "-m", "pip", *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT if combined else asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise CommandError(f"failed to start {self.python_path}", 127, str(e)) from e
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
            raise

        output = stdout.decode(errors="replace")
        if process.returncode != 0:
            if not combined and stderr:
                output += stderr.decode(errors="replace")
            raise CommandError(f"pip {args[0]} failed", process.returncode, output)
        return output

    async def list_packages(self) -> list[InstalledPackage]:
        """List installed packages via ``pip list --format=json``."""
        logger.debug("Using Python executable %s", self.python_path)
        output = await self._run("list", "--format=json", combined=False)

        try:
            raw = json.loads(output)
        except json.JSONDecodeError as e:
            raise ManifestFormatError(f"failed to parse pip list output: {e}") from e
        if not isinstance(raw, list):
            raise ManifestFormatError("failed to parse pip list output: expected a list")

        return [
            InstalledPackage(
                name=item["name"],
                version=item["version"],
                location=item.get("location"),
            )
            for item in raw
            if isinstance(item, dict) and item.get("name") and item.get("version")
        ]

    async def apply_patch(self, patch: PackagePatch) -> None:
        """Uninstall the vulnerable package, then install the fixed one."""
        logger.debug("Uninstalling package %s", patch.package_name)
        await self._run("uninstall", "-y", patch.package_name)

        target = patch.target(self.use_alias)
        logger.debug(
            "Installing patched package %s==%s (use_alias=%s)",
            target.name, target.version, self.use_alias,
        )
        await self._run(
            "install",
            "--no-deps",
            "--no-cache-dir",
            "--index-url", self.index_url(),
            f"{target.name}=={target.version}",
        )

    async def apply_patch_for_pip(self, patch: PackagePatch) -> None:
        """Upgrade pip in place.

        pip cannot uninstall itself from the interpreter it is running in,
        so this is a single ``install --upgrade``.
        """
        target = patch.target(self.use_alias)
        logger.debug("Upgrading pip package to %s", target.version)
        await self._run(
            "install",
            "--no-deps",
            "--no-cache-dir",
            "--upgrade",
            "--index-url", self.index_url(),
            f"{target.name}=={target.version}",
        )
