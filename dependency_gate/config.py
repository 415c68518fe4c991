"""
Load the advisory policy and the dependency watch-list.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List

from .errors import ConfigError
from .models import AllowlistEntry, PolicyConfig, WatchedDependency
from .time_utils import parse_iso_date


logger = logging.getLogger(__name__)

DEFAULT_POLICY_PATH = Path("security") / "rustsec-policy.json"
DEFAULT_WATCHLIST_PATH = Path("security") / "dependency-watch.json"
DEFAULT_MAX_REVIEW_WINDOW_DAYS = 45
MAX_REVIEW_WINDOW_DAYS = 36500


def _read_json(path: Path) -> Any:
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"missing config at {path}")
    logger.debug("Loading %s", path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{path} is not valid JSON ({e})") from e
    except OSError as e:
        raise ConfigError(f"cannot read {path} ({e})") from e


def _parse_window(path: Path, metadata: Dict) -> int:
    raw = metadata.get("max_review_window_days", DEFAULT_MAX_REVIEW_WINDOW_DAYS)
    message = (
        f"{path}: metadata.max_review_window_days must be an integer "
        f"between 1 and {MAX_REVIEW_WINDOW_DAYS}"
    )
    # bool is an int subclass; true/false are not window sizes.
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ConfigError(message)
    if isinstance(raw, float) and (not math.isfinite(raw) or not raw.is_integer()):
        raise ConfigError(message)
    if not 1 <= raw <= MAX_REVIEW_WINDOW_DAYS:
        raise ConfigError(message)
    return int(raw)


def load_policy(path: Path) -> PolicyConfig:
    """Load the advisory allowlist policy.

    Args:
        path: Path to the policy JSON file

    Returns:
        PolicyConfig with entries in file order

    Raises:
        ConfigError: the file is missing, not JSON, or a field is malformed
    """
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top-level value must be an object")

    metadata = data.get("metadata")
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise ConfigError(f"{path}: metadata must be an object")
    window = _parse_window(path, metadata)

    raw_allow = data.get("allow")
    if raw_allow is None:
        raw_allow = []
    if not isinstance(raw_allow, list):
        raise ConfigError(f"{path}: allow must be a list")

    entries: List[AllowlistEntry] = []
    seen = set()
    for index, raw in enumerate(raw_allow):
        if not isinstance(raw, dict):
            raise ConfigError(f"{path}: allow[{index}] must be an object")
        advisory_id = raw.get("id")
        if not isinstance(advisory_id, str) or not advisory_id:
            raise ConfigError(f"{path}: allow[{index}].id must be a non-empty string")
        if advisory_id in seen:
            raise ConfigError(f"{path}: duplicate allowlist entry {advisory_id}")
        seen.add(advisory_id)

        review_by = None
        raw_review_by = raw.get("review_by")
        if raw_review_by:
            review_by = parse_iso_date(raw_review_by)
            if review_by is None:
                raise ConfigError(
                    f"{path}: allow[{index}].review_by must be YYYY-MM-DD, got {raw_review_by!r}"
                )
        entries.append(AllowlistEntry(advisory_id=advisory_id, review_by=review_by))

    logger.info("Loaded %d allowlist entries from %s", len(entries), path)
    return PolicyConfig(allow=tuple(entries), max_review_window_days=window)


def load_watchlist(path: Path) -> List[WatchedDependency]:
    """Load the dependency watch-list, preserving configured order."""
    data = _read_json(path)
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top-level value must be an object")

    raw_deps = data.get("dependencies")
    if not isinstance(raw_deps, list) or not raw_deps:
        raise ConfigError(f"no dependencies configured in {path}")

    watched: List[WatchedDependency] = []
    for index, raw in enumerate(raw_deps):
        if not isinstance(raw, dict):
            raise ConfigError(f"{path}: dependencies[{index}] must be an object")
        name = raw.get("name")
        if not isinstance(name, str) or not name:
            raise ConfigError(f"{path}: dependencies[{index}] has no name")
        fail_on_update = raw.get("fail_on_update", False)
        if not isinstance(fail_on_update, bool):
            raise ConfigError(
                f"{path}: dependencies[{index}].fail_on_update must be true or false"
            )
        group = raw.get("group") or "unknown"
        watched.append(
            WatchedDependency(name=name, group=str(group), fail_on_update=fail_on_update)
        )

    logger.info("Loaded %d watched dependencies from %s", len(watched), path)
    return watched
