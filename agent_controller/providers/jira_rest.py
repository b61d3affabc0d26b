"""Jira Cloud client using direct REST API calls."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from agent_controller.exceptions import IssueFetchError

log = structlog.get_logger(__name__)

DEFAULT_SEARCH_FIELDS = ["summary", "status", "priority", "issuetype", "assignee", "created", "description"]


class JiraRestClient:
    """Jira Cloud REST v3 client authenticated with email + API token.

    Example:
        >>> async with JiraRestClient(url, "me@acme.io", token) as jira:
        ...     raw = await jira.get_issue("APC-142")
    """

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        *,
        timeout: float = 30.0,
        page_size: int = 100,
        default_retry_after: float = 2.0,
        max_rate_limit_retries: int = 5,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize Jira client.

        Args:
            base_url: Jira site URL (e.g., https://acme.atlassian.net)
            email: Account email
            api_token: API token
            timeout: HTTP timeout in seconds
            page_size: Issues requested per search page (Jira caps this at 100)
            default_retry_after: Wait used for a 429 without Retry-After
            max_rate_limit_retries: 429 responses retried per request before giving up
            client: Pre-built HTTP client (tests pass one with a mock transport)
            sleep: Coroutine used to wait between rate-limited requests
        """
        self.base_url = base_url.strip().rstrip("/")
        self.email = email.strip()
        self.api_token = api_token.strip()
        self.timeout = timeout
        self.page_size = page_size
        self.default_retry_after = default_retry_after
        self.max_rate_limit_retries = max_rate_limit_retries
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self.email, self.api_token),
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        log.debug("jira_connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "JiraRestClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.disconnect()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get_issue(self, issue_key: str) -> Any:
        """Fetch one issue as raw JSON.

        Raises:
            IssueFetchError: If the request fails or Jira answers non-2xx
        """
        if self._client is None:
            await self.connect()

        issue_key = issue_key.strip()
        log.info("jira_get_issue", issue_key=issue_key)

        try:
            response = await self._client.get(self._url(f"rest/api/3/issue/{issue_key}"))
        except httpx.HTTPError as e:
            raise IssueFetchError(f"Request to Jira failed: {e}") from e

        if not response.is_success:
            log.warning("jira_get_issue_failed", issue_key=issue_key, status_code=response.status_code)
            raise IssueFetchError(
                f"{response.status_code} {response.text}",
                status_code=response.status_code,
                response_text=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise IssueFetchError(f"Jira returned invalid JSON for {issue_key}") from e

    async def search(
        self,
        jql: str,
        fields: list[str] | None = None,
        max_results: int | None = None,
    ) -> dict[str, Any]:
        """Run a JQL search, following pagination.

        Args:
            jql: JQL query string
            fields: Fields to return for each issue
            max_results: Stop after this many issues (None fetches every page)

        Returns:
            ``{"issues": [...]}`` with the raw issue records

        Raises:
            IssueFetchError: If any page request fails
        """
        if self._client is None:
            await self.connect()

        log.info("jira_search", jql=jql, max_results=max_results)
        if max_results is not None and max_results <= 0:
            return {"issues": []}

        issues: list[Any] = []
        start_at = 0
        while True:
            page_size = self.page_size
            if max_results is not None:
                page_size = min(page_size, max_results - len(issues))

            payload = {
                "jql": jql,
                "startAt": start_at,
                "maxResults": page_size,
                "fields": fields or DEFAULT_SEARCH_FIELDS,
            }
            page = await self._post_search(payload)

            page_issues = page.get("issues") or []
            issues.extend(page_issues)
            start_at += len(page_issues)
            total = page.get("total", 0)

            if not page_issues or start_at >= total:
                break
            if max_results is not None and len(issues) >= max_results:
                break

        if max_results is not None:
            issues = issues[:max_results]

        log.info("jira_search_completed", jql=jql, count=len(issues))
        return {"issues": issues}

    async def _post_search(self, payload: dict[str, Any]) -> dict[str, Any]:
        retries = 0
        while True:
            try:
                response = await self._client.post(self._url("rest/api/3/search"), json=payload)
            except httpx.HTTPError as e:
                raise IssueFetchError(f"Request to Jira failed: {e}") from e

            if response.status_code == 429:
                if retries >= self.max_rate_limit_retries:
                    log.warning("jira_rate_limit_exhausted", retries=retries)
                    raise IssueFetchError(
                        f"Jira rate limit persisted after {retries} retries",
                        status_code=429,
                        response_text=response.text,
                    )
                retries += 1
                delay = self._retry_after(response)
                log.warning("jira_rate_limited", retry_after=delay, attempt=retries)
                await self._sleep(delay)
                continue

            if not response.is_success:
                raise IssueFetchError(
                    f"{response.status_code} {response.text}",
                    status_code=response.status_code,
                    response_text=response.text,
                )

            try:
                data = response.json()
            except ValueError as e:
                raise IssueFetchError("Jira returned invalid JSON for search") from e
            return data if isinstance(data, dict) else {}

    def _retry_after(self, response: httpx.Response) -> float:
        value = response.headers.get("Retry-After")
        try:
            return max(float(value), 0.0) if value is not None else self.default_retry_after
        except ValueError:
            return self.default_retry_after
