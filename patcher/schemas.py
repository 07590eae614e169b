"""Request and response models for the remediation API."""

from pydantic import BaseModel, Field, field_validator


class Package(BaseModel):
    """A package sent for analysis."""
    name: str
    version: str


class AnalyzePackagesRequest(BaseModel):
    """Request body for ``POST /v3/remediate/{ecosystem}``."""
    packages: list[Package]


class PatchInfo(BaseModel):
    """Name and version of a package that carries a fix."""
    name: str = ""
    version: str = ""


class PackagePatch(BaseModel):
    """A package the service can patch."""
    package_name: str
    version: str = ""
    patch: PatchInfo = Field(default_factory=PatchInfo)
    patch_alias: PatchInfo = Field(default_factory=PatchInfo)
    cve_ids: list[str] = Field(default_factory=list)

    @field_validator("cve_ids", mode="before")
    @classmethod
    def null_cve_ids(cls, value):
        return [] if value is None else value

    def target(self, use_alias: bool) -> PatchInfo:
        """Pick the aliased or same-named fix."""
        return self.patch_alias if use_alias else self.patch


class SkippedPackage(BaseModel):
    """A package the service could not analyze or patch."""
    package_name: str
    reason: str = ""


class AnalyzePackagesResponse(BaseModel):
    """Response body of the remediate endpoint."""
    patches: list[PackagePatch] = Field(default_factory=list)
    skipped: list[SkippedPackage] = Field(default_factory=list)

    @field_validator("patches", "skipped", mode="before")
    @classmethod
    def null_lists(cls, value):
        return [] if value is None else value
