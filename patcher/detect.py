"""Lock file and package manager detection."""

LOCK_FILES = {
    "npm": "package-lock.json",
    "yarn": "yarn.lock",
    "pnpm": "pnpm-lock.yaml",
}

OVERRIDE_FIELDS = {
    "npm": "overrides",
    "yarn": "resolutions",
    "pnpm": "overrides",  # nested under "pnpm" in package.json
}


def lock_file_for(package_manager: str) -> str:
    """Return the lock file name a package manager writes.

    Unknown managers fall back to ``package-lock.json``.
    """
    return LOCK_FILES.get(package_manager, LOCK_FILES["npm"])


def package_manager_for(lock_path: str) -> str:
    """Infer the package manager from a lock file path."""
    # Suffix match so paths like ``app/yarn.lock`` are recognised
    for manager, lock_file in LOCK_FILES.items():
        if lock_path.endswith(lock_file):
            return manager
    return "npm"


def override_field(package_manager: str) -> str:
    """Return the package.json field holding version overrides."""
    return OVERRIDE_FIELDS.get(package_manager, "overrides")
