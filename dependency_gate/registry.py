"""
Registry lookups for the latest published version of a crate.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import quote

import requests

from .errors import FetchError


logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://crates.io/api/v1/crates"
LATEST_VERSION_FIELDS = ("max_stable_version", "max_version", "newest_version")


class CratesIoFetcher:
    """Fetch the latest crate version from the crates.io API."""

    USER_AGENT = "dependency-gate/0.1 (dependency-watch)"

    def __init__(
        self,
        base_url: str = DEFAULT_REGISTRY_URL,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = 30.0,
        user_agent: str = USER_AGENT,
    ):
        """Initialize the fetcher.

        Args:
            base_url: Crates API endpoint, without trailing crate name
            session: Shared requests session (a new one is created if omitted)
            timeout: Per-request timeout in seconds; None blocks indefinitely
            user_agent: User-Agent header; crates.io rejects anonymous clients
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch_latest(self, name: str) -> str:
        url = f"{self.base_url}/{quote(name, safe='')}"
        logger.info("Fetching latest version for %s", name)
        try:
            with self.session.get(
                url, headers={"user-agent": self.user_agent}, timeout=self.timeout
            ) as response:
                if not response.ok:
                    raise FetchError(f"crates.io request failed ({response.status_code})")
                payload = response.json()
        except requests.RequestException as e:
            raise FetchError(f"crates.io request failed ({e})") from e
        except ValueError as e:
            raise FetchError(f"crates.io returned invalid JSON ({e})") from e

        crate = payload.get("crate") if isinstance(payload, dict) else None
        if isinstance(crate, dict):
            for field_name in LATEST_VERSION_FIELDS:
                latest = crate.get(field_name)
                if latest:
                    logger.debug("%s latest=%s (from %s)", name, latest, field_name)
                    return str(latest)
        raise FetchError("latest version missing from crates.io response")
