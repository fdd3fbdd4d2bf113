# -*- coding: utf-8 -*-
"""Tests for the SHA-256 provenance chain."""

import hashlib
import json

import pytest

from greenvisio.config import VisioConfig, set_config
from greenvisio.provenance import ProvenanceTracker, get_provenance_tracker


@pytest.fixture
def tracker():
    return ProvenanceTracker()


class TestRecord:

    def test_first_entry_chains_from_genesis(self, tracker):
        entry = tracker.record("meeting", "estimate", "jdoe", data={"a": 1})
        assert entry.parent_hash == tracker.genesis_hash
        assert tracker.genesis_hash == hashlib.sha256(b"greenlang-visio-genesis").hexdigest()
        assert len(entry.hash_value) == 64

    def test_entries_are_linked(self, tracker):
        first = tracker.record("meeting", "estimate", "jdoe")
        second = tracker.record("meeting", "estimate", "asmith")
        assert second.parent_hash == first.hash_value
        assert tracker.last_chain_hash == second.hash_value

    def test_data_hash_is_canonical(self, tracker):
        first = tracker.record("meeting", "estimate", "jdoe", data={"a": 1, "b": 2})
        second = tracker.record("meeting", "estimate", "jdoe", data={"b": 2, "a": 1})
        assert first.metadata["data_hash"] == second.metadata["data_hash"]

    def test_metadata_is_kept(self, tracker):
        entry = tracker.record("meeting", "estimate", "jdoe", metadata={"duration": 60})
        assert entry.metadata["duration"] == 60
        assert "data_hash" in entry.metadata

    @pytest.mark.parametrize("entity_type,action,entity_id", [
        ("invoice", "estimate", "jdoe"),
        ("meeting", "delete", "jdoe"),
        ("meeting", "estimate", ""),
    ])
    def test_invalid_arguments(self, tracker, entity_type, action, entity_id):
        with pytest.raises(ValueError):
            tracker.record(entity_type, action, entity_id)


class TestVerifyChain:

    def test_empty_chain_is_valid(self, tracker):
        assert tracker.verify_chain()

    def test_intact_chain(self, tracker):
        for user in ("a", "b", "c"):
            tracker.record("meeting", "estimate", user, data={"user": user})
        assert tracker.verify_chain()

    def test_tampered_data_hash(self, tracker):
        tracker.record("meeting", "estimate", "a", data={"total": 1})
        tracker.record("meeting", "estimate", "b", data={"total": 2})
        tracker.get_chain()[0].metadata["data_hash"] = tracker.build_hash({"total": 0})
        assert not tracker.verify_chain()

    def test_broken_link(self, tracker):
        tracker.record("meeting", "estimate", "a")
        tracker.record("meeting", "estimate", "b")
        tracker.get_chain()[1].parent_hash = "0" * 64
        assert not tracker.verify_chain()


class TestQueries:

    def test_get_entries_filters(self, tracker):
        tracker.record("reference_database", "load_database", "/data")
        for user in ("a", "b", "c"):
            tracker.record("meeting", "estimate", user)

        assert len(tracker.get_entries(entity_type="meeting")) == 3
        assert len(tracker.get_entries(action="load_database")) == 1
        assert [e.entity_id for e in tracker.get_entries(entity_type="meeting", limit=2)] == ["b", "c"]

    def test_export_json(self, tracker):
        tracker.record("meeting", "estimate", "jdoe")
        exported = json.loads(tracker.export_json())
        assert exported[0]["entity_id"] == "jdoe"

    def test_reset(self, tracker):
        tracker.record("meeting", "estimate", "jdoe")
        tracker.reset()
        assert len(tracker) == 0
        assert tracker.last_chain_hash == tracker.genesis_hash


class TestSingleton:

    def test_uses_configured_genesis(self):
        set_config(VisioConfig(genesis_hash="custom-genesis"))
        tracker = get_provenance_tracker()
        assert tracker.genesis_hash == hashlib.sha256(b"custom-genesis").hexdigest()
        assert get_provenance_tracker() is tracker
