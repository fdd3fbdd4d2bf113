# -*- coding: utf-8 -*-
"""
Provenance Tracking for meeting damage estimations

SHA-256 chain-hashed, in-memory log of every meeting damage estimation.
Each entry stores the hash of the request and its result and links to the
previous entry, so any tampering with the log breaks ``verify_chain()``.

Entity Types:
    - meeting: A meeting damage estimation (request + result)
    - reference_database: A load of the reference tables

Actions:
    - estimate: A meeting damage was computed
    - load_database: Reference tables were loaded

Example:
    >>> from greenvisio.provenance import ProvenanceTracker
    >>> tracker = ProvenanceTracker()
    >>> entry = tracker.record("meeting", "estimate", "jdoe", data={"totalDamage": {}})
    >>> tracker.verify_chain()
    True
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


@dataclass
class ProvenanceEntry:
    """One tamper-evident provenance record.

    Attributes:
        entity_type: Type of entity tracked (meeting, reference_database).
        entity_id: Identifier of the entity (user for meetings).
        action: Action performed (estimate, load_database).
        hash_value: SHA-256 chain hash of this entry.
        parent_hash: Chain hash of the preceding entry (or genesis hash).
        timestamp: UTC ISO-formatted timestamp.
        metadata: Data hash plus caller supplied fields.
    """

    entity_type: str
    entity_id: str
    action: str
    hash_value: str
    parent_hash: str
    timestamp: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "hash_value": self.hash_value,
            "parent_hash": self.parent_hash,
            "timestamp": self.timestamp,
            "metadata": self.metadata,
        }


VALID_ENTITY_TYPES = frozenset({"meeting", "reference_database"})

VALID_ACTIONS = frozenset({"estimate", "load_database"})


class ProvenanceTracker:
    """Chain-hashed provenance log of meeting damage estimations.

    The genesis hash anchors the chain; every new entry incorporates the
    previous chain hash.

    Example:
        >>> tracker = ProvenanceTracker()
        >>> entry = tracker.record("meeting", "estimate", "jdoe")
        >>> entry.parent_hash == tracker.genesis_hash
        True
    """

    def __init__(self, genesis_hash: str = "greenlang-visio-genesis") -> None:
        self._genesis_hash: str = hashlib.sha256(
            genesis_hash.encode("utf-8")
        ).hexdigest()
        self._global_chain: List[ProvenanceEntry] = []
        self._last_chain_hash: str = self._genesis_hash
        self._lock: threading.RLock = threading.RLock()
        logger.info(
            "ProvenanceTracker initialized with genesis hash prefix=%s",
            self._genesis_hash[:16],
        )

    def record(
        self,
        entity_type: str,
        action: str,
        entity_id: str,
        data: Optional[Any] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ProvenanceEntry:
        """Record a provenance entry chained to the previous one.

        Args:
            entity_type: One of VALID_ENTITY_TYPES.
            action: One of VALID_ACTIONS.
            entity_id: Entity identifier.
            data: Optional JSON-serializable payload; only its SHA-256 hash
                is stored.
            metadata: Optional extra fields stored with the data hash.

        Returns:
            The new :class:`ProvenanceEntry`.

        Raises:
            ValueError: Unknown entity type or action, or empty entity id.
        """
        if entity_type not in VALID_ENTITY_TYPES:
            raise ValueError(f"Unknown entity_type '{entity_type}'")
        if action not in VALID_ACTIONS:
            raise ValueError(f"Unknown action '{action}'")
        if not entity_id:
            raise ValueError("entity_id must not be empty")

        timestamp = _utcnow().isoformat()
        data_hash = self.build_hash(data)

        entry_metadata: Dict[str, Any] = {"data_hash": data_hash}
        if metadata:
            entry_metadata.update(metadata)

        with self._lock:
            parent_hash = self._last_chain_hash
            chain_hash = self._compute_chain_hash(parent_hash, data_hash, action, timestamp)
            entry = ProvenanceEntry(
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                hash_value=chain_hash,
                parent_hash=parent_hash,
                timestamp=timestamp,
                metadata=entry_metadata,
            )
            self._global_chain.append(entry)
            self._last_chain_hash = chain_hash

        logger.debug(
            "Recorded provenance: %s/%s action=%s hash_prefix=%s",
            entity_type,
            entity_id[:16],
            action,
            chain_hash[:16],
        )
        return entry

    def verify_chain(self) -> bool:
        """Check that every entry links to its predecessor (genesis for the first)."""
        with self._lock:
            chain = list(self._global_chain)

        expected_parent = self._genesis_hash
        for i, entry in enumerate(chain):
            if entry.parent_hash != expected_parent:
                logger.warning("verify_chain: chain break at entry[%d]", i)
                return False
            recomputed = self._compute_chain_hash(
                entry.parent_hash,
                entry.metadata.get("data_hash", ""),
                entry.action,
                entry.timestamp,
            )
            if recomputed != entry.hash_value:
                logger.warning("verify_chain: entry[%d] hash does not match its content", i)
                return False
            expected_parent = entry.hash_value

        logger.debug("verify_chain: %d entries verified successfully", len(chain))
        return True

    def get_chain(self) -> List[ProvenanceEntry]:
        with self._lock:
            return list(self._global_chain)

    def get_entries(
        self,
        entity_type: Optional[str] = None,
        action: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ProvenanceEntry]:
        """Entries filtered by type and action; ``limit`` keeps the most recent ones."""
        with self._lock:
            entries = list(self._global_chain)
        if entity_type:
            entries = [e for e in entries if e.entity_type == entity_type]
        if action:
            entries = [e for e in entries if e.action == action]
        if limit is not None and limit > 0 and len(entries) > limit:
            entries = entries[-limit:]
        return entries

    def export_chain(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [entry.to_dict() for entry in self._global_chain]

    def export_json(self) -> str:
        return json.dumps(self.export_chain(), indent=2, default=str)

    def reset(self) -> None:
        """Clear all entries and go back to the genesis hash (testing)."""
        with self._lock:
            self._global_chain.clear()
            self._last_chain_hash = self._genesis_hash
        logger.info("ProvenanceTracker reset to genesis state")

    @property
    def genesis_hash(self) -> str:
        return self._genesis_hash

    @property
    def last_chain_hash(self) -> str:
        with self._lock:
            return self._last_chain_hash

    def __len__(self) -> int:
        with self._lock:
            return len(self._global_chain)

    def __repr__(self) -> str:
        return (
            f"ProvenanceTracker(entries={len(self)}, "
            f"genesis_prefix={self._genesis_hash[:12]})"
        )

    def build_hash(self, data: Optional[Any]) -> str:
        """SHA-256 of ``data`` serialized as canonical JSON (sorted keys)."""
        if data is None:
            serialized = "null"
        else:
            serialized = json.dumps(data, sort_keys=True, default=str)
        return hashlib.sha256(serialized.encode("utf-8")).hexdigest()

    @staticmethod
    def _compute_chain_hash(
        parent_hash: str,
        data_hash: str,
        action: str,
        timestamp: str,
    ) -> str:
        combined = json.dumps(
            {
                "action": action,
                "data_hash": data_hash,
                "parent_hash": parent_hash,
                "timestamp": timestamp,
            },
            sort_keys=True,
        )
        return hashlib.sha256(combined.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Thread-safe singleton helpers
# ---------------------------------------------------------------------------

_singleton_lock = threading.Lock()
_singleton_tracker: Optional[ProvenanceTracker] = None


def get_provenance_tracker() -> ProvenanceTracker:
    """Return the process-wide tracker, anchored on the configured genesis hash."""
    global _singleton_tracker
    if _singleton_tracker is None:
        with _singleton_lock:
            if _singleton_tracker is None:
                from greenvisio.config import get_config
                _singleton_tracker = ProvenanceTracker(get_config().genesis_hash)
    return _singleton_tracker


def reset_provenance_tracker() -> None:
    """Drop the process-wide tracker (testing)."""
    global _singleton_tracker
    with _singleton_lock:
        _singleton_tracker = None


__all__ = [
    "ProvenanceEntry",
    "ProvenanceTracker",
    "VALID_ENTITY_TYPES",
    "VALID_ACTIONS",
    "get_provenance_tracker",
    "reset_provenance_tracker",
]
