"""Exceptions raised by rootio-patcher."""


class PatcherError(Exception):
    """Base class for all remediation errors."""


class ConfigError(PatcherError):
    """Required configuration is missing or invalid."""


class ManifestNotFoundError(PatcherError):
    """The manifest or lock file does not exist."""


class ManifestReadError(PatcherError):
    """The manifest exists but could not be read."""


class ManifestFormatError(PatcherError):
    """The manifest (or command output) could not be decoded."""


class NotYetImplementedError(ManifestFormatError):
    """The file format is recognised but not supported yet."""


class ManifestWriteError(PatcherError):
    """Updated content could not be written back."""


class ValidationFailedError(PatcherError):
    """Updated content failed syntax validation and was not written."""


class RemoteServiceError(PatcherError):
    """The remediation API call failed."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CommandError(PatcherError):
    """A package-manager subprocess exited with a non-zero status."""

    def __init__(self, message: str, returncode: int, output: str = ""):
        super().__init__(f"{message}: exit status {returncode} (output: {output.strip()})")
        self.returncode = returncode
        self.output = output


class PatchApplyError(PatcherError):
    """Applying one patch of a sequence failed.

    Patches before ``index`` stay applied; nothing is rolled back.
    """

    def __init__(self, index: int, total: int, package_name: str, cause: Exception):
        super().__init__(f"[{index}/{total}] patch for {package_name} failed: {cause}")
        self.index = index
        self.total = total
        self.package_name = package_name
