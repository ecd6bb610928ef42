"""Unread GitHub notification counts."""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from collections import Counter
from typing import Iterable, Mapping, Sequence

from barblocks.api import BlockError, State

API_URL = "https://api.github.com/notifications"
USER_AGENT = "barblocks"
TIMEOUT = 30.0
MAX_PAGES = 99

KNOWN_REASONS = (
    "assign",
    "author",
    "comment",
    "ci_activity",
    "invitation",
    "manual",
    "mention",
    "review_requested",
    "security_alert",
    "state_change",
    "subscribed",
    "team_mention",
)


def count_notifications(reasons: Iterable[str]) -> dict[str, int]:
    """Count notifications per reason, plus ``total``; known reasons default to zero."""
    counts = Counter(reasons)
    stats = dict(counts)
    stats["total"] = sum(counts.values())
    for reason in KNOWN_REASONS:
        stats.setdefault(reason, 0)
    return stats


def github_state(
    stats: Mapping[str, int],
    critical: Sequence[str] | None = None,
    warning: Sequence[str] | None = None,
    info: Sequence[str] | None = None,
    good: Sequence[str] | None = None,
) -> State:
    """State of the most severe list containing a reason with pending notifications."""
    for names, state in (
        (critical, State.CRITICAL),
        (warning, State.WARNING),
        (info, State.INFO),
        (good, State.GOOD),
    ):
        if names and any(stats.get(name, 0) > 0 for name in names):
            return state
    return State.IDLE


def _fetch_page_sync(token: str, page: int) -> list[str]:
    request = urllib.request.Request(
        f"{API_URL}?per_page=100&page={page}",
        headers={
            "Authorization": f"token {token}",
            "User-Agent": USER_AGENT,
            "Accept": "application/vnd.github+json",
        },
    )
    try:
        with urllib.request.urlopen(request, timeout=TIMEOUT) as response:
            body = response.read()
    except urllib.error.HTTPError as exc:
        body = exc.read()
    except OSError as exc:
        raise BlockError("Failed to send request") from exc

    try:
        data = json.loads(body)
    except (ValueError, TypeError) as exc:
        raise BlockError("Failed to get JSON") from exc

    if isinstance(data, list):
        reasons = []
        for item in data:
            if not isinstance(item, dict) or not isinstance(item.get("reason"), str):
                raise BlockError("Failed to get JSON")
            reasons.append(item["reason"])
        return reasons
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        raise BlockError(f"API error: {data['message']}")
    raise BlockError("Failed to get JSON")


async def fetch_page(token: str, page: int) -> list[str]:
    """Reasons of the notifications on one page of the API listing."""
    return await asyncio.to_thread(_fetch_page_sync, token, page)


async def get_stats(token: str) -> dict[str, int]:
    """Notification counts across all pages."""
    reasons: list[str] = []
    for page in range(1, MAX_PAGES + 1):
        on_page = await fetch_page(token, page)
        if not on_page:
            break
        reasons.extend(on_page)
    return count_notifications(reasons)