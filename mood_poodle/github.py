"""
GitHub collaborator: contribution activity in, issue replies out.

Activity comes from a single GraphQL query returning the contribution calendar
and the number of owned repositories. Replies are posted as issue comments
through the REST API.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from . import config
from .contributions import ActivitySourceError
from .models import Activity, ContributionDay

logger = logging.getLogger(__name__)

ACTIVITY_QUERY = """
query($login: String!) {
  user(login: $login) {
    contributionsCollection {
      contributionCalendar {
        weeks {
          contributionDays {
            date
            contributionCount
          }
        }
      }
    }
    repositories(ownerAffiliations: OWNER) {
      totalCount
    }
  }
}
"""


class NotificationError(Exception):
    """Posting a reply or closing an issue failed."""


class GitHubClient:
    """
    Async GitHub API client acting as activity source and notification sink.

    Use as an async context manager, or pass an existing ``httpx.AsyncClient``
    (which the caller then owns).
    """

    def __init__(
        self,
        token: str | None = None,
        repository: str | None = None,
        base_url: str = config.GITHUB_API_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.repository = repository
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url, headers=headers, timeout=30.0
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # MARK: - Activity Source

    async def fetch_activity(self, username: str) -> Activity:
        """
        Fetch the contribution calendar and owned repository count.

        Raises:
            ActivitySourceError: On transport errors, GraphQL errors or an
                unexpected payload
        """
        try:
            response = await self._client.post(
                "/graphql",
                json={"query": ACTIVITY_QUERY, "variables": {"login": username}},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ActivitySourceError(f"GitHub request failed: {e}") from e

        return _parse_activity(payload)

    # MARK: - Notification Sink

    async def post_comment(self, issue_number: int, body: str) -> None:
        await self._issue_request(
            "POST", f"/issues/{issue_number}/comments", {"body": body}
        )

    async def close_issue(self, issue_number: int) -> None:
        await self._issue_request(
            "PATCH", f"/issues/{issue_number}", {"state": "closed"}
        )

    # MARK: - Private Helpers

    async def _issue_request(self, method: str, path: str, body: dict[str, Any]) -> None:
        if not self.repository:
            raise NotificationError("No repository configured for issue replies")
        try:
            response = await self._client.request(
                method, f"/repos/{self.repository}{path}", json=body
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotificationError(f"{method} {path} failed: {e}") from e


def _parse_activity(payload: Any) -> Activity:
    if not isinstance(payload, dict):
        raise ActivitySourceError("Malformed GraphQL response")
    errors = payload.get("errors")
    if errors:
        if not isinstance(errors, list):
            errors = [errors]
        messages = "; ".join(
            str(err.get("message", err)) if isinstance(err, dict) else str(err)
            for err in errors
        )
        raise ActivitySourceError(f"GraphQL errors: {messages}")

    try:
        user = payload["data"]["user"]
        if user is None:
            raise ActivitySourceError("User not found")
        weeks = user["contributionsCollection"]["contributionCalendar"]["weeks"]
        days = [
            ContributionDay(day=day["date"], count=day["contributionCount"])
            for week in weeks
            for day in week["contributionDays"]
        ]
        repo_count = user["repositories"]["totalCount"]
        return Activity(days=days, repo_count=repo_count)
    except (AttributeError, KeyError, TypeError, ValidationError) as e:
        raise ActivitySourceError(f"Malformed contribution data: {e}") from e
