from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import requests

from . import __version__
from .logging import get_logger
from .models import Issue, Milestone
from .retry import run_with_retries

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = f"issuedigest/{__version__}"
HTTP_ERROR_STATUS = 400
PER_PAGE = 100
SEARCH_RESULT_CAP = 1000
REQUEST_TIMEOUT = 30


class GitHubAPIError(RuntimeError):
    """Raised when the GitHub REST API returns an error."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
        retry_after: float | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text
        self.retry_after = retry_after


def parse_retry_after(value: str | None) -> float | None:
    """Seconds from a ``Retry-After`` header; None when absent or not a delay."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


@dataclass
class GitHubRestClient:
    """Lightweight REST client covering the calls the reconciler needs."""

    token: str
    repo: str
    base_url: str = DEFAULT_API_URL
    session: requests.Session | None = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Authorization", f"Bearer {self.token}")
        self._session.headers.setdefault("Accept", "application/vnd.github+json")
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    # ---- REST helpers -------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        url = (
            path
            if path.startswith("http")
            else f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
        )

        def _run() -> requests.Response:
            start = time.perf_counter()
            response = self._session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._session.headers,
                timeout=REQUEST_TIMEOUT,
            )
            get_logger().log_api_call(
                method, url, response.status_code, (time.perf_counter() - start) * 1000
            )
            if response.status_code >= HTTP_ERROR_STATUS:
                raise GitHubAPIError(
                    f"GitHub API {method} {url} failed with {response.status_code}",
                    status=response.status_code,
                    response_text=response.text,
                    retry_after=parse_retry_after(response.headers.get("Retry-After")),
                )
            return response

        response = run_with_retries(_run, sleep=self.sleep)
        if not response.text:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubAPIError(
                f"GitHub API {method} {url} returned invalid JSON",
                status=response.status_code,
                response_text=response.text,
            ) from exc

    def _paginate(self, path: str, *, params: dict[str, Any] | None = None) -> list[Any]:
        params = dict(params or {})
        per_page = params.setdefault("per_page", PER_PAGE)
        params.setdefault("page", 1)
        results: list[Any] = []
        while True:
            data = self._request("GET", path, params=dict(params))
            if not isinstance(data, list):
                break
            results.extend(data)
            if len(data) < per_page:
                break
            params["page"] = params.get("page", 1) + 1
        return results

    # ---- Milestones ---------------------------------------------------
    def get_milestone(self, number: int) -> Milestone:
        data = self._request("GET", f"/repos/{self.repo}/milestones/{number}")
        if not isinstance(data, dict):
            raise GitHubAPIError(f"unexpected milestone payload for #{number}")
        return Milestone.from_api(data)

    def list_milestones(self, *, state: str = "open") -> list[Milestone]:
        data = self._paginate(
            f"/repos/{self.repo}/milestones",
            params={"state": state, "sort": "due_on", "direction": "asc"},
        )
        return [Milestone.from_api(entry) for entry in data if isinstance(entry, dict)]

    # ---- Issues -------------------------------------------------------
    def list_issues(
        self,
        *,
        milestone: int | None = None,
        labels: Iterable[str] | None = None,
        state: str = "all",
    ) -> list[Issue]:
        params: dict[str, Any] = {"state": state}
        if milestone is not None:
            params["milestone"] = str(milestone)
        label_list = [label for label in labels or () if label]
        if label_list:
            params["labels"] = ",".join(label_list)
        data = self._paginate(f"/repos/{self.repo}/issues", params=params)
        return [Issue.from_api(entry) for entry in data if isinstance(entry, dict)]

    def search_issues(self, query: str) -> list[Issue]:
        """Run an issue search; GitHub stops serving results after 1000 items."""
        page = 1
        results: list[Issue] = []
        while len(results) < SEARCH_RESULT_CAP:
            data = self._request(
                "GET",
                "/search/issues",
                params={"q": query, "per_page": PER_PAGE, "page": page},
            )
            items = data.get("items") if isinstance(data, dict) else None
            if not isinstance(items, list):
                break
            results.extend(Issue.from_api(entry) for entry in items if isinstance(entry, dict))
            total = data.get("total_count")
            if len(items) < PER_PAGE or (isinstance(total, int) and len(results) >= total):
                break
            page += 1
        return results[:SEARCH_RESULT_CAP]

    def create_issue(self, *, title: str, body: str, labels: Iterable[str] | None = None) -> int:
        payload: dict[str, Any] = {"title": title, "body": body}
        if labels:
            payload["labels"] = list(labels)
        data = self._request("POST", f"/repos/{self.repo}/issues", json_body=payload)
        if isinstance(data, dict):
            number = data.get("number")
            if isinstance(number, int):
                return number
        raise GitHubAPIError("issue created but response carried no number")

    def update_issue(
        self,
        *,
        number: int,
        title: str | None = None,
        body: str | None = None,
    ) -> None:
        payload: dict[str, Any] = {}
        if title is not None:
            payload["title"] = title
        if body is not None:
            payload["body"] = body
        if payload:
            self._request("PATCH", f"/repos/{self.repo}/issues/{number}", json_body=payload)


__all__ = ["GitHubAPIError", "GitHubRestClient", "DEFAULT_API_URL", "parse_retry_after"]
