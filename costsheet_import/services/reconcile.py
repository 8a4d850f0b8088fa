from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol

from ..db.store import MatchKey, MatchStrategy, StoreError, like_pattern
from ..models.cost_record import Category, CostRecord
from ..models.save_result import ACTION_INSERTED, ACTION_UPDATED, SaveResult
from .store_row import to_store_row

"""Reconciliation: insert a new cost record or update the one already stored.

Lookup runs the MATCH_STRATEGIES tiers in order and stops at the first tier
that returns a candidate:

    exact -> case_insensitive -> partial (%value%) -> lenient (customer, season)

A tier whose key fields are blank is skipped; otherwise a blank style number
would turn the partial tier into "match everything".

The lenient tier can merge two different styles of the same customer and
season into one row. It is kept as is and every lenient hit is logged at
WARN level; set reconciliation.lenient_match: false to turn it off.
"""

__all__ = [
    "MATCH_STRATEGIES",
    "CostStore",
    "find_existing",
    "save_cost_record",
]

logger = logging.getLogger(__name__)

KEY_FIELDS = ("customer", "season", "style_number")


class CostStore(Protocol):
    def acquire_lock(self, key: MatchKey) -> None: ...
    def release(self) -> None: ...
    def find_candidates(self, strategy: MatchStrategy, key: MatchKey) -> list[dict[str, Any]]: ...
    def update(self, record_id: Any, values: Mapping[str, Any]) -> dict[str, Any]: ...
    def insert(self, values: Mapping[str, Any]) -> dict[str, Any]: ...


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _exact(fields: Sequence[str]) -> Callable[[Mapping[str, Any], MatchKey], bool]:
    return lambda row, key: all(_text(row.get(f)) == getattr(key, f) for f in fields)


def _casefold(fields: Sequence[str]) -> Callable[[Mapping[str, Any], MatchKey], bool]:
    return lambda row, key: all(
        _text(row.get(f)).lower() == getattr(key, f).lower() for f in fields
    )


def _contains(fields: Sequence[str]) -> Callable[[Mapping[str, Any], MatchKey], bool]:
    return lambda row, key: all(
        getattr(key, f).lower() in _text(row.get(f)).lower() for f in fields
    )


def _where(template: str, fields: Sequence[str]) -> str:
    return " AND ".join(template.format(col=f'"{f}"') for f in fields)


def _strategy(name: str, fields: tuple[str, ...], template: str, kind: str) -> MatchStrategy:
    if kind == "eq":
        params = lambda key: tuple(getattr(key, f) for f in fields)  # noqa: E731
        matches = _exact(fields)
    elif kind == "ieq":
        params = lambda key: tuple(getattr(key, f) for f in fields)  # noqa: E731
        matches = _casefold(fields)
    else:
        params = lambda key: tuple(like_pattern(getattr(key, f)) for f in fields)  # noqa: E731
        matches = _contains(fields)
    return MatchStrategy(
        name=name,
        fields=fields,
        clause=_where(template, fields),
        params=params,
        matches=matches,
    )


MATCH_STRATEGIES: tuple[MatchStrategy, ...] = (
    _strategy("exact", KEY_FIELDS, "{col} = %s", "eq"),
    _strategy("case_insensitive", KEY_FIELDS, "LOWER({col}) = LOWER(%s)", "ieq"),
    _strategy("partial", KEY_FIELDS, "{col} ILIKE %s", "like"),
    _strategy("lenient", ("customer", "season"), "{col} ILIKE %s", "like"),
)


def find_existing(
    store: CostStore,
    key: MatchKey,
    strategies: Sequence[MatchStrategy] = MATCH_STRATEGIES,
) -> tuple[MatchStrategy | None, list[dict[str, Any]]]:
    """First strategy with candidates and its candidate list."""
    for strategy in strategies:
        if not strategy.applicable(key):
            logger.debug("match %s skipped: blank key field", strategy.name)
            continue
        candidates = store.find_candidates(strategy, key)
        if candidates:
            return strategy, candidates
    return None, []


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _stamp(value: Any) -> str:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return _text(value) or "unknown"


def save_cost_record(
    record: CostRecord,
    store: CostStore,
    *,
    lenient_match: bool = True,
    advisory_lock: bool = True,
    clock: Callable[[], datetime] | None = None,
) -> SaveResult:
    """Persist ``record``; update the matching stored row or insert a new one.

    Runs inside the caller's transaction. Store failures come back as
    ``SaveResult(success=False)``; nothing is retried.
    """
    values = to_store_row(record)
    key = MatchKey.clean(*(values[f] for f in KEY_FIELDS))
    strategies = [s for s in MATCH_STRATEGIES if lenient_match or s.name != "lenient"]
    now = (clock or _utc_now)()
    kind = "Beanie" if record.category is Category.BEANIE else "Ballcaps"

    locked = False
    try:
        if advisory_lock and (key.customer or key.season):
            store.acquire_lock(key)
            locked = True

        strategy, candidates = find_existing(store, key, strategies)
        if strategy is not None:
            existing = candidates[0]
            if strategy.name == "lenient":
                logger.warning(
                    "lenient match: style '%s' merged into id=%s (style '%s') for %s/%s",
                    key.style_number,
                    existing.get("id"),
                    existing.get("style_number"),
                    key.customer,
                    key.season,
                )
            payload = {
                **values,
                "updated_at": now,
                "remarks": (
                    f"{kind} data updated on {now.isoformat()} "
                    f"(was: {_stamp(existing.get('created_at'))})"
                ),
            }
            stored = store.update(existing["id"], payload)
            return SaveResult(
                success=True,
                action=ACTION_UPDATED,
                record=stored,
                matched_by=strategy.name,
                message=f"updated id={stored.get('id')} ({strategy.name} match)",
            )

        payload = {
            **values,
            "created_at": now,
            "remarks": f"{kind} data imported on {now.isoformat()}",
        }
        stored = store.insert(payload)
        return SaveResult(
            success=True,
            action=ACTION_INSERTED,
            record=stored,
            message=f"inserted id={stored.get('id')}",
        )
    except StoreError as e:
        return SaveResult.failed(str(e))
    finally:
        if locked:
            store.release()
