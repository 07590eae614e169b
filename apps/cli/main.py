"""CLI application for rootio-patcher."""

import asyncio
import logging
from collections.abc import Coroutine
from enum import Enum
from importlib.metadata import PackageNotFoundError, version
from typing import NoReturn

import typer
from rich.console import Console

from patcher.config import Config, load_config
from patcher.errors import ConfigError
from patcher.log import configure_logging
from patcher.remediate_maven import MavenRemediation
from patcher.remediate_npm import NpmRemediation
from patcher.remediate_pip import PipRemediation

try:
    __version__ = version("rootio-patcher")
except PackageNotFoundError:
    __version__ = "dev"

logger = logging.getLogger(__name__)
err_console = Console(stderr=True)


class PackageManager(str, Enum):
    npm = "npm"
    yarn = "yarn"
    pnpm = "pnpm"


def fail(message: str) -> NoReturn:
    err_console.print(f"\n✗ {message}", style="red", markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(1)


def setup() -> Config:
    """Load configuration and logging; exits 1 if the environment is incomplete."""
    try:
        cfg = load_config()
    except ConfigError as e:
        fail(f"Failed to load environment configuration: {e}")
    configure_logging(cfg.log_level)
    return cfg


def execute(coro: Coroutine) -> None:
    """Run a remediation coroutine, mapping every failure to exit code 1."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        fail("Interrupted")
    except Exception as e:
        logger.debug("Remediation failed", exc_info=True)
        fail(f"Error: {e}")


app = typer.Typer(
    name="rootio-patcher",
    help="Automated security patching for Python, npm, and Maven packages with Root.io",
    add_completion=False,
    no_args_is_help=True,
)
pip_app = typer.Typer(help="Python/pip package remediation", no_args_is_help=True)
npm_app = typer.Typer(help="npm package remediation", no_args_is_help=True)
maven_app = typer.Typer(help="Maven package remediation", no_args_is_help=True)

app.add_typer(pip_app, name="pip")
app.add_typer(npm_app, name="npm")
app.add_typer(maven_app, name="maven")


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"rootio-patcher {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    show_version: bool = typer.Option(
        False, "--version", "-v", callback=version_callback, is_eager=True,
        help="Print version information",
    ),
) -> None:
    """rootio-patcher - Remediate vulnerable dependencies."""


DRY_RUN_OPTION = typer.Option(
    True, "--dry-run/--no-dry-run", envvar="DRY_RUN",
    help="Preview changes without applying them",
)


@pip_app.command("remediate")
def pip_remediate(
    python_path: str = typer.Option(
        "python", "--python-path", envvar="PYTHON_PATH", help="Path to Python interpreter"
    ),
    dry_run: bool = DRY_RUN_OPTION,
    use_alias: bool = typer.Option(
        True, "--use-alias/--no-use-alias", envvar="USE_ALIAS",
        help="Install Root.io aliased packages",
    ),
) -> None:
    """Remediate installed Python packages (post-install patching)."""
    cfg = setup()
    logger.info("Starting pip remediation")
    remediation = PipRemediation(cfg, python_path=python_path, dry_run=dry_run, use_alias=use_alias)
    execute(remediation.run())


@npm_app.command("remediate")
def npm_remediate(
    package_manager: PackageManager | None = typer.Option(
        None, "--package-manager", help="Package manager (npm, yarn or pnpm); inferred from --file"
    ),
    file: str | None = typer.Option(
        None, "--file", help="Path to the lock file (default: the package manager's lock file)"
    ),
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    """Remediate npm packages by patching the lock file."""
    cfg = setup()
    manager = package_manager.value if package_manager else None
    logger.info("Starting npm remediation (package manager: %s)", manager or "auto")
    remediation = NpmRemediation(cfg, package_manager=manager, dry_run=dry_run, lock_file=file)
    execute(remediation.run())


@maven_app.command("remediate")
def maven_remediate(
    file: str = typer.Option("pom.xml", "--file", help="Path to pom.xml"),
    dry_run: bool = DRY_RUN_OPTION,
) -> None:
    """Remediate Maven packages (pre-install patching of pom.xml)."""
    cfg = setup()
    logger.info("Starting Maven remediation (file: %s)", file)
    remediation = MavenRemediation(cfg, file_path=file, dry_run=dry_run)
    execute(remediation.run())


if __name__ == "__main__":
    app()
