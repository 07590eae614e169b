"""Client for the Root.io remediation API."""

import logging

import httpx
from pydantic import ValidationError

from .errors import RemoteServiceError
from .models import Ecosystem
from .schemas import AnalyzePackagesRequest, AnalyzePackagesResponse, Package

logger = logging.getLogger(__name__)


class RemediationClient:
    """Sends package lists to the remediation API and returns patches."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 60.0):
        """Initialize the client.

        Args:
            base_url: API base URL, e.g. ``https://api.root.io``
            api_key: API key, sent as the Basic auth username
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    async def analyze_packages(
        self, ecosystem: Ecosystem, packages: list[Package]
    ) -> AnalyzePackagesResponse:
        """Ask the service which packages have patches available.

        Args:
            ecosystem: Ecosystem the packages belong to
            packages: Packages to analyze

        Returns:
            Parsed response with patches and skipped packages
        """
        url = f"{self.base_url}/v3/remediate/{ecosystem.value}"
        body = AnalyzePackagesRequest(packages=packages).model_dump()

        logger.debug("POST %s (%d packages)", url, len(packages))
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=body, auth=(self.api_key, ""))
        except httpx.HTTPError as e:
            raise RemoteServiceError(f"failed to execute request: {e}") from e

        if response.status_code != 200:
            raise RemoteServiceError(
                f"API returned status {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return AnalyzePackagesResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise RemoteServiceError(f"failed to decode response: {e}") from e
