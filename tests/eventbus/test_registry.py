"""
Event Bus - Listener Registry Tests
=====================================
Covers:
- Fan-out in registration order
- Isolation by event name
- unlisten by signature and by handle
- De-duplication of identical registrations
- Mute / unmute
- Snapshot queries and the no-empty-key invariant
- Validation of event names and callbacks
"""

import pytest

from eventbus.config import BusConfig
from eventbus.errors import InvalidEventName, InvalidListenerError
from eventbus.listener import Event
from eventbus.registry import ListenerRegistry


class Recorder:
    """Collects (label, payload) calls in invocation order."""

    def __init__(self):
        self.calls = []

    def make(self, label):
        def callback(payload):
            self.calls.append((label, payload))
        return callback

    def labels(self):
        return [label for label, _ in self.calls]


@pytest.fixture
def registry():
    return ListenerRegistry("test")


@pytest.fixture
def recorder():
    return Recorder()


# ══════════════════════════════════════════════════════════════
# DISPATCH
# ══════════════════════════════════════════════════════════════

class TestDispatch:
    def test_single_listener_invoked_once(self, registry, recorder):
        registry.listen("event1", recorder.make("cb1"))
        registry.dispatch("event1")
        assert recorder.labels() == ["cb1"]

    def test_fan_out_in_registration_order(self, registry, recorder):
        for label in ("a", "b", "c", "d"):
            registry.listen("event1", recorder.make(label))

        registry.dispatch("event1")
        assert recorder.labels() == ["a", "b", "c", "d"]

    def test_only_matching_name_invoked(self, registry, recorder):
        registry.listen("event1", recorder.make("cb1"))
        registry.listen("event2", recorder.make("cb2"))
        registry.listen("event1", recorder.make("cb3"))

        registry.dispatch("event1")
        assert recorder.labels() == ["cb1", "cb3"]

    def test_payload_passed_through(self, registry, recorder):
        data = {"a": 1, "b": "2"}
        registry.listen("test", recorder.make("cb"))
        registry.dispatch("test", data)
        assert recorder.calls == [("cb", data)]
        assert recorder.calls[0][1] is data

    def test_no_listeners_is_noop(self, registry):
        result = registry.dispatch("nobody")
        assert result.notified == 0
        assert not result.delivered
        assert registry.event_names() == frozenset()

    def test_result_counts_notified(self, registry, recorder):
        registry.listen("e", recorder.make("a"))
        registry.listen("e", recorder.make("b"))
        result = registry.dispatch("e")
        assert result.notified == 2
        assert result.channel_id == "test"
        assert result.event_name == "e"

    def test_event_object_is_default_payload(self, registry, recorder):
        registry.listen("ready", recorder.make("cb"))
        event = Event("ready", target="rocket")
        registry.dispatch(event)
        assert recorder.calls == [("cb", event)]

    def test_event_object_with_explicit_payload(self, registry, recorder):
        registry.listen("ready", recorder.make("cb"))
        registry.dispatch(Event("ready"), {"t": 10})
        assert recorder.calls == [("cb", {"t": 10})]

    def test_closure_with_context_receives_payload_only(self, registry):
        class Euston:
            pass

        seen = []
        registry.listen("ready", lambda payload: seen.append(payload), Euston())
        registry.dispatch("ready", 1)
        assert seen == [1]

    def test_explicit_none_payload_with_event_object(self, registry, recorder):
        registry.listen("ready", recorder.make("cb"))
        registry.dispatch(Event("ready"), None)
        assert recorder.calls == [("cb", None)]

    def test_name_without_payload_delivers_none(self, registry, recorder):
        registry.listen("ready", recorder.make("cb"))
        registry.dispatch("ready")
        assert recorder.calls == [("cb", None)]

    def test_entry_records_channel(self, registry, recorder):
        entry = registry.listen("ready", recorder.make("cb"))
        assert entry.channel_id == "test"

    def test_listener_exception_propagates_and_aborts(self, registry, recorder):
        def boom(payload):
            raise RuntimeError("boom")

        registry.listen("e", recorder.make("before"))
        registry.listen("e", boom)
        registry.listen("e", recorder.make("after"))

        with pytest.raises(RuntimeError, match="boom"):
            registry.dispatch("e")
        assert recorder.labels() == ["before"]


# ══════════════════════════════════════════════════════════════
# UNLISTEN
# ══════════════════════════════════════════════════════════════

class TestUnlisten:
    def test_unlisten_stops_delivery(self, registry, recorder):
        cb = recorder.make("cb1")
        registry.listen("event1", cb)
        assert registry.unlisten("event1", cb) is True

        registry.dispatch("event1")
        assert recorder.calls == []

    def test_unlisten_requires_same_context(self, registry, recorder):
        cb = recorder.make("cb")
        ctx = object()
        registry.listen("e", cb, ctx)

        assert registry.unlisten("e", cb) is False
        assert registry.unlisten("e", cb, object()) is False
        assert registry.unlisten("e", cb, ctx) is True

    def test_unlisten_unknown_name_returns_false(self, registry, recorder):
        assert registry.unlisten("missing", recorder.make("cb")) is False

    def test_unlisten_removes_empty_key(self, registry, recorder):
        cb = recorder.make("cb")
        registry.listen("e", cb)
        registry.unlisten("e", cb)
        assert "e" not in registry.event_names()
        assert not registry.has_listeners("e")

    def test_unlisten_keeps_other_listeners(self, registry, recorder):
        a, b = recorder.make("a"), recorder.make("b")
        registry.listen("e", a)
        registry.listen("e", b)
        registry.unlisten("e", a)

        registry.dispatch("e")
        assert recorder.labels() == ["b"]

    def test_relisten_after_unlisten(self, registry, recorder):
        cb = recorder.make("cb")
        registry.listen("e", cb)
        registry.unlisten("e", cb)
        registry.listen("e", cb)

        registry.dispatch("e")
        assert recorder.labels() == ["cb"]

    def test_unlisten_bound_method(self, registry):
        class Dummy:
            def __init__(self):
                self.count = 0

            def foo(self, payload):
                self.count += 1

        dummy = Dummy()
        registry.listen("test", dummy.foo, dummy)
        assert registry.unlisten("test", dummy.foo, dummy) is True
        registry.dispatch("test")
        assert dummy.count == 0


class TestUnlistenListener:
    def test_remove_by_handle(self, registry, recorder):
        entry = registry.listen("e", recorder.make("cb"))
        assert registry.unlisten_listener(entry) is True

        registry.dispatch("e")
        assert recorder.calls == []
        assert registry.event_names() == frozenset()

    def test_second_removal_returns_false(self, registry, recorder):
        entry = registry.listen("e", recorder.make("cb"))
        registry.unlisten_listener(entry)
        assert registry.unlisten_listener(entry) is False

    def test_foreign_entry_returns_false(self, registry, recorder):
        other = ListenerRegistry("other")
        entry = other.listen("e", recorder.make("cb"))
        registry.listen("e", recorder.make("mine"))
        assert registry.unlisten_listener(entry) is False
        assert registry.listener_count("e") == 1


# ══════════════════════════════════════════════════════════════
# DE-DUPLICATION
# ══════════════════════════════════════════════════════════════

class TestDeduplication:
    def test_identical_registration_stored_once(self, registry, recorder):
        cb = recorder.make("cb1")
        ctx = object()
        for _ in range(3):
            registry.listen("event1", cb, ctx)

        assert len(registry.get_listeners("event1")) == 1

    def test_duplicate_returns_existing_entry(self, registry, recorder):
        cb = recorder.make("cb")
        first = registry.listen("e", cb)
        assert registry.listen("e", cb) is first

    def test_bound_method_deduplicated(self, registry):
        class Dummy:
            def foo(self, payload):
                pass

        dummy = Dummy()
        registry.listen("test", dummy.foo, dummy)
        registry.listen("test", dummy.foo, dummy)
        assert registry.listener_count("test") == 1

    def test_different_context_is_distinct(self, registry, recorder):
        cb = recorder.make("cb")
        registry.listen("e", cb, object())
        registry.listen("e", cb, object())
        assert registry.listener_count("e") == 2

    def test_duplicates_allowed_by_config(self, recorder):
        registry = ListenerRegistry(
            "dup", BusConfig(allow_duplicate_listeners=True)
        )
        cb = recorder.make("cb")
        first = registry.listen("e", cb)
        second = registry.listen("e", cb)

        assert first is not second
        registry.dispatch("e")
        assert recorder.labels() == ["cb", "cb"]

        # Signature removal takes the first match only
        assert registry.unlisten("e", cb) is True
        assert registry.get_listeners("e") == [second]


# ══════════════════════════════════════════════════════════════
# MUTE
# ══════════════════════════════════════════════════════════════

class TestMute:
    def test_muted_dispatch_invokes_nothing(self, registry, recorder):
        registry.listen("test", recorder.make("cb"))
        registry.mute()
        result = registry.dispatch("test")

        assert recorder.calls == []
        assert result.muted
        assert registry.muted

    def test_unmute_resumes_delivery(self, registry, recorder):
        registry.listen("test", recorder.make("cb"))
        registry.mute()
        registry.unmute()
        registry.dispatch("test")

        assert recorder.labels() == ["cb"]
        assert not registry.muted

    def test_mute_keeps_registrations(self, registry, recorder):
        registry.listen("test", recorder.make("cb"))
        registry.mute()
        assert registry.listener_count("test") == 1

    def test_listen_while_muted(self, registry, recorder):
        registry.mute()
        registry.listen("test", recorder.make("cb"))
        registry.dispatch("test")
        registry.unmute()
        registry.dispatch("test")
        assert recorder.labels() == ["cb"]


# ══════════════════════════════════════════════════════════════
# QUERIES
# ══════════════════════════════════════════════════════════════

class TestQueries:
    def test_get_listeners_empty(self, registry):
        assert registry.get_listeners("missing") == []

    def test_get_listeners_is_a_copy(self, registry, recorder):
        registry.listen("e", recorder.make("cb"))
        snapshot = registry.get_listeners("e")
        snapshot.clear()

        assert registry.listener_count("e") == 1
        registry.dispatch("e")
        assert recorder.labels() == ["cb"]

    def test_get_listeners_in_order(self, registry, recorder):
        a = registry.listen("e", recorder.make("a"))
        b = registry.listen("e", recorder.make("b"))
        assert registry.get_listeners("e") == [a, b]

    def test_len_counts_all_entries(self, registry, recorder):
        registry.listen("e1", recorder.make("a"))
        registry.listen("e1", recorder.make("b"))
        registry.listen("e2", recorder.make("c"))
        assert len(registry) == 3
        assert registry.event_names() == frozenset({"e1", "e2"})

    def test_clear(self, registry, recorder):
        registry.listen("e1", recorder.make("a"))
        registry.clear()
        assert len(registry) == 0
        registry.dispatch("e1")
        assert recorder.calls == []

    def test_channel_id(self, registry):
        assert registry.channel_id == "test"


# ══════════════════════════════════════════════════════════════
# VALIDATION
# ══════════════════════════════════════════════════════════════

class TestValidation:
    @pytest.mark.parametrize("bad_name", ["", None, 42])
    def test_listen_rejects_bad_event_name(self, registry, recorder, bad_name):
        with pytest.raises(InvalidEventName):
            registry.listen(bad_name, recorder.make("cb"))

    def test_listen_rejects_non_callable(self, registry):
        with pytest.raises(InvalidListenerError, match="callable"):
            registry.listen("e", "not a function")

    def test_dispatch_rejects_bad_event_name(self, registry):
        with pytest.raises(InvalidEventName):
            registry.dispatch("")

    def test_failed_listen_leaves_no_key(self, registry):
        with pytest.raises(InvalidListenerError):
            registry.listen("e", None)
        assert registry.event_names() == frozenset()
