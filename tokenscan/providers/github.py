"""Repository activity from the GitHub REST API."""

from __future__ import annotations

import asyncio
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

import httpx

from tokenscan.providers.base import BaseProvider, ProviderQuery, clean_text, safe_int

GITHUB_API_URL = "https://api.github.com"
PAGE_SIZE = 100
COMMIT_WINDOW_DAYS = 30

_REPO_URL_RE = re.compile(r"github\.com/([A-Za-z0-9_.-]+)(?:/([A-Za-z0-9_.-]+))?", re.IGNORECASE)


def parse_repo_url(url: Optional[str]) -> Optional[Tuple[str, Optional[str]]]:
    """``(owner, repo)`` from a github.com URL; ``repo`` is None for org/user pages."""
    if not url:
        return None
    match = _REPO_URL_RE.search(url)
    if not match:
        return None
    owner, repo = match.group(1), match.group(2)
    if repo and repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return owner, repo or None


def parse_github_time(value: Any) -> Optional[datetime]:
    text = clean_text(value)
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


class GitHubProvider(BaseProvider):
    """Stars, forks, contributors, 30-day commits and last push of the project repo.

    Org-only URLs resolve to the owner's most-starred public repository.
    After the repository lookup, the commit and contributor listings are
    fetched concurrently as single pages, so both counts saturate at
    ``PAGE_SIZE``.
    """

    name = "github"
    phase = 3
    fields = frozenset(
        {
            "github_stars",
            "github_forks",
            "github_contributors",
            "github_commits_30d",
            "github_last_push",
            "github_archived",
            "github_language",
        }
    )

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json", "User-Agent": "tokenscan"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _fetch(self, query: ProviderQuery, client: httpx.AsyncClient) -> Optional[Dict[str, Any]]:
        record = query.record
        parsed = parse_repo_url(record.github_url if record else None)
        if not parsed:
            return None

        owner, repo_name = parsed
        headers = self._headers()
        if repo_name:
            repo = await self._get_json(client, f"{GITHUB_API_URL}/repos/{owner}/{repo_name}", headers=headers)
        else:
            repos = await self._get_json(
                client,
                f"{GITHUB_API_URL}/users/{owner}/repos",
                params={"sort": "updated", "per_page": PAGE_SIZE},
                headers=headers,
            )
            candidates = [item for item in repos or [] if isinstance(item, dict) and not item.get("fork")]
            repo = max(candidates, key=lambda item: item.get("stargazers_count") or 0, default=None)
        if not isinstance(repo, dict) or not repo.get("full_name"):
            return None

        full_name = repo["full_name"]
        since = record.fetched_at - timedelta(days=COMMIT_WINDOW_DAYS)
        commits, contributors = await asyncio.gather(
            self._get_page(
                client,
                f"{GITHUB_API_URL}/repos/{full_name}/commits",
                params={"since": since.isoformat(), "per_page": PAGE_SIZE},
            ),
            self._get_page(
                client,
                f"{GITHUB_API_URL}/repos/{full_name}/contributors",
                params={"per_page": PAGE_SIZE, "anon": "false"},
            ),
        )

        return {
            "github_stars": safe_int(repo.get("stargazers_count")),
            "github_forks": safe_int(repo.get("forks_count")),
            "github_contributors": len(contributors) if isinstance(contributors, list) else None,
            "github_commits_30d": len(commits) if isinstance(commits, list) else None,
            "github_last_push": parse_github_time(repo.get("pushed_at")),
            "github_archived": bool(repo.get("archived")),
            "github_language": clean_text(repo.get("language")),
        }

    async def _get_page(self, client: httpx.AsyncClient, url: str, params: Dict[str, Any]) -> Optional[list]:
        resp = await client.get(url, params=params, headers=self._headers(), timeout=self.timeout)
        # 204 for repositories without history, 409 for empty ones
        if resp.status_code in (204, 409):
            return []
        return self._decode(resp)
