"""
Persisted feed preferences.

Five selections survive across sessions: trade type, price tier, asset-type
filter, grade filter and the custom asset-group order. ``UserPreferences``
is an immutable value; the feed hands back a diff of namespaced keys and the
caller decides when to write it. ``DebouncedPreferenceWriter`` coalesces
rapid changes into a single write.
"""

import json
import time
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from .exceptions import PreferenceStoreError
from .logger import LogEvent, get_logger
from .schemas import FilterState

logger = get_logger(__name__)

PERSISTED_FIELDS = ("trade_type", "price_tier", "asset_type", "grade", "asset_order")


def preference_key(namespace: str, name: str) -> str:
    return f"{namespace}.{name}"


class UserPreferences(BaseModel):
    """Persisted filter defaults; None means no stored value."""

    model_config = ConfigDict(frozen=True)

    trade_type: Optional[str] = None
    price_tier: Optional[str] = None
    asset_type: Optional[str] = None
    grade: Optional[str] = None
    asset_order: Optional[List[str]] = None

    @classmethod
    def from_filter_state(cls, state: FilterState) -> "UserPreferences":
        return cls(**{name: getattr(state, name) for name in PERSISTED_FIELDS})

    @classmethod
    def from_store(cls, store: Mapping[str, Any], namespace: str) -> "UserPreferences":
        """
        Read preferences from a key/value store.

        Values may be stored raw or JSON-encoded. A value the filter state
        would reject is ignored (and logged) so a stale entry never blocks
        the feed from loading.
        """
        values: Dict[str, Any] = {}
        for name in PERSISTED_FIELDS:
            key = preference_key(namespace, name)
            if key not in store:
                continue
            value = _decode(store[key])
            try:
                FilterState(**{name: value})
            except ValidationError:
                logger.warning(LogEvent.PREFERENCE_IGNORED.value, key=key, value=repr(value))
                continue
            values[name] = value

        logger.debug(LogEvent.PREFERENCES_LOADED.value, namespace=namespace, fields=sorted(values))
        return cls(**values)

    def apply_to(self, state: FilterState) -> FilterState:
        """Overlay stored values onto ``state``."""
        stored = {name: value for name, value in self.model_dump().items() if value is not None}
        if not stored:
            return state
        return state.replace(**stored)

    def to_store(self, namespace: str) -> Dict[str, Any]:
        return {
            preference_key(namespace, name): value
            for name, value in self.model_dump().items()
            if value is not None
        }

    def diff(self, previous: "UserPreferences", namespace: str) -> Dict[str, Any]:
        """Namespaced entries whose value differs from ``previous``."""
        changed: Dict[str, Any] = {}
        for name in PERSISTED_FIELDS:
            value = getattr(self, name)
            if value != getattr(previous, name):
                changed[preference_key(namespace, name)] = value
        return changed


def _decode(raw: Any) -> Any:
    """Undo JSON encoding applied by string-only stores."""
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw
    return raw


class DebouncedPreferenceWriter:
    """Collects preference diffs and writes them once changes settle."""

    def __init__(
        self,
        store: MutableMapping[str, Any],
        delay_seconds: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            store: Destination key/value store
            delay_seconds: Quiet period required before a write
            clock: Monotonic time source
        """
        self.store = store
        self.delay_seconds = delay_seconds
        self.clock = clock
        self._pending: Dict[str, Any] = {}
        self._due_at: Optional[float] = None

    @property
    def pending(self) -> Dict[str, Any]:
        return dict(self._pending)

    def stage(self, diff: Mapping[str, Any]) -> None:
        """Queue ``diff``; each call restarts the quiet period."""
        if not diff:
            return
        self._pending.update(diff)
        self._due_at = self.clock() + self.delay_seconds

    def flush_if_due(self) -> int:
        """Write pending values if the quiet period has elapsed."""
        if self._due_at is None or self.clock() < self._due_at:
            return 0
        return self.flush()

    def flush(self) -> int:
        """
        Write every pending value now.

        Returns:
            Number of keys written

        Raises:
            PreferenceStoreError: If the store rejects a write; unwritten
                values stay pending
        """
        written = 0
        for key, value in list(self._pending.items()):
            try:
                self.store[key] = value
            except (OSError, KeyError, TypeError, ValueError) as e:
                raise PreferenceStoreError(f"Failed to persist {key}: {e}") from e
            del self._pending[key]
            written += 1

        self._due_at = None
        if written:
            logger.debug(LogEvent.PREFERENCES_FLUSHED.value, keys=written)
        return written
