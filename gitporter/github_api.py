"""GitHub REST API client for listing and creating repositories."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .reconcile.error_types import ConfigurationError, GitPorterError


class GitHubAPIError(GitPorterError):
    """A GitHub API request failed; ``status_code`` is None for transport failures."""

    def __init__(self, message: str, status_code: Optional[int] = None, operation: Optional[str] = None):
        super().__init__(message, operation=operation, details={"status_code": status_code})
        self.status_code = status_code


class GitHubClient:
    """
    Thin pass-through client for the two account operations the server offers.

    Requests authenticate with a personal access token. Responses are
    returned as decoded JSON without reshaping.
    """

    def __init__(
        self,
        token: Optional[str],
        api_base_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        if not token:
            raise ConfigurationError("GitHub personal access token is not configured",
                                     operation="github_api")
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self._token = token
        self._transport = transport
        self.logger = logging.getLogger('gitporter.github_api')

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"token {self._token}",
            "Accept": "application/vnd.github.v3+json",
        }

    def _request(self, operation: str, method: str, url: str, **kwargs) -> Any:
        try:
            with httpx.Client(
                base_url=self.api_base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport
            ) as client:
                response = client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise GitHubAPIError(f"Network error contacting GitHub: {e}", operation=operation) from e

        if response.status_code >= 400:
            message = None
            try:
                message = response.json().get("message")
            except (ValueError, AttributeError):
                pass
            message = message or f"Unexpected GitHub API response: {response.status_code}"
            self.logger.warning(f"GitHub {method} {url} failed with {response.status_code}: {message}")
            raise GitHubAPIError(message, status_code=response.status_code, operation=operation)

        return response.json()

    def list_repositories(self, username: str) -> List[Dict[str, Any]]:
        """Repositories owned by ``username``."""
        if not username or not username.strip():
            raise GitHubAPIError("GitHub username is required", operation="list_repositories")
        return self._request("list_repositories", "GET", f"/users/{username.strip()}/repos")

    def create_repository(self, name: str, description: Optional[str] = None, auto_init: bool = True) -> Dict[str, Any]:
        """Create a repository under the token's account, initialized with a README by default."""
        payload = {"name": name, "description": description, "auto_init": auto_init}
        repo = self._request("create_repository", "POST", "/user/repos", json=payload)
        self.logger.info(f"Created GitHub repository {repo.get('full_name', name)}")
        return repo
