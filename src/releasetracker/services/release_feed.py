from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Generic, Optional, TypeVar

import httpx

from releasetracker.config.settings import settings
from releasetracker.models.domain import FeedPayload, FeatureRecord
from releasetracker.services.exceptions import FeedUnavailable
from releasetracker.services.feature_keys import NAME_FIELD, extract_key

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 14400

T = TypeVar("T")


@dataclass
class FeedCache(Generic[T]):
    """
    Last fetched value plus the time it was stored.

    Owned by whoever wires the feed (API deps, CLI); the clock is injectable
    so tests can move time forward.
    """

    ttl_s: float = DEFAULT_TTL_S
    clock: Callable[[], float] = time.monotonic
    value_at: float = 0.0
    value: Optional[T] = None

    def __post_init__(self) -> None:
        if not self.ttl_s or self.ttl_s <= 0:
            self.ttl_s = DEFAULT_TTL_S

    def get(self) -> Optional[T]:
        if self.value is None:
            return None
        if self.clock() - self.value_at >= self.ttl_s:
            return None
        return self.value

    def put(self, value: T) -> None:
        self.value = value
        self.value_at = self.clock()


def parse_feed_json(body: str) -> Any:
    """
    The feed is JSON, but occasionally wrapped in extra text.
    Fall back to the slice between the first '{' and the last '}'.
    """
    try:
        return json.loads(body)
    except ValueError:
        pass
    first = body.find("{")
    last = body.rfind("}")
    if first >= 0 and last > first:
        try:
            return json.loads(body[first:last + 1])
        except ValueError:
            return None
    return None


def build_page_url(base_url: str, page: int) -> str:
    return base_url if page == 1 else f"{base_url}?page={page}"


class ReleasePlanFeed:
    """
    Pull every release plan from the Microsoft feed.

    Design:
    - Sync client (simple for CLI + tests)
    - Dependency injection via `client` makes it testable without real HTTP
    - Hard page cap so a misbehaving upstream can't loop forever
    """

    def __init__(
        self,
        base_url: str | None = None,
        max_pages: int | None = None,
        cache: FeedCache[FeedPayload] | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url or settings.feed_url
        self.max_pages = max_pages or settings.feed_max_pages
        self.cache = cache
        self.client = client

    def __call__(self) -> FeedPayload:
        return self.fetch_all()

    def fetch_all(self) -> FeedPayload:
        if self.cache is not None:
            cached = self.cache.get()
            if cached is not None:
                logger.debug("Serving release plans from cache")
                return cached

        client = self.client
        close_client = False
        if client is None:
            client = httpx.Client(timeout=settings.feed_timeout_s, headers=_headers())
            close_client = True

        try:
            results = self._fetch_pages(client)
        finally:
            if close_client:
                client.close()

        payload = FeedPayload(
            fetched_at=datetime.now(timezone.utc).isoformat(),
            source_url=self.base_url,
            results=results,
        )
        if self.cache is not None:
            self.cache.put(payload)
        return payload

    def _fetch_pages(self, client: httpx.Client) -> list[FeatureRecord]:
        out: list[FeatureRecord] = []
        seen: set[str] = set()

        for page in range(1, self.max_pages + 1):
            data = self._fetch_page(client, page)

            for record in data["results"]:
                if not isinstance(record, dict) or not record.get(NAME_FIELD):
                    continue
                key = extract_key(record)
                if key:
                    if key in seen:
                        continue
                    seen.add(key)
                out.append(record)

            if not data.get("morerecords"):
                break
        else:
            logger.warning("Stopped after %d pages; feed still reports more records", self.max_pages)

        return out

    def _fetch_page(self, client: httpx.Client, page: int) -> dict:
        url = build_page_url(self.base_url, page)
        try:
            r = client.get(url, headers=_headers())
        except httpx.HTTPError as e:
            raise FeedUnavailable(f"Microsoft API request failed: {e}") from e

        if r.status_code != 200:
            raise FeedUnavailable(f"Microsoft API error {r.status_code}")

        data = parse_feed_json(r.text)
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise FeedUnavailable("Unexpected Microsoft API response shape")
        return data


def _headers() -> dict[str, str]:
    return {
        "user-agent": settings.feed_user_agent,
        "accept": "*/*",
        "accept-language": "en-US,en;q=0.9",
    }
