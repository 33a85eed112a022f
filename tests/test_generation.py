"""Tests for model generations, the model handle and the refresh tracker."""

import pytest

from hyperrec.exceptions import ModelNotReadyError, RefreshError
from hyperrec.recommender.generation import ModelHandle, build_generation
from hyperrec.recommender.records import InteractionKind
from hyperrec.recommender.store import InteractionStore
from hyperrec.recommender.tracker import InteractionTracker, RefreshPolicy


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def store(events):
    store = InteractionStore()
    store.extend(events)
    return store


@pytest.fixture
def handle(catalog, store):
    return ModelHandle.for_catalog(catalog, store)


def test_build_generation(catalog, store):
    """Test that a generation bundles matrix and embeddings from one snapshot."""
    generation = build_generation(catalog, store, version=3)

    assert generation.model_version == "gen-3"
    assert generation.matrix.shape == (3, 5)
    assert len(generation.user_index) == 3
    assert len(generation.product_index) == 5
    assert generation.events_seen == 5
    assert generation.matrix.cell("u1", "p1") > 0

    summary = generation.summary()
    assert summary["num_users"] == 3
    assert summary["embedding_dim"] == generation.encoder.dimension


def test_handle_not_ready(handle):
    """Test that the handle is empty until the first refresh."""
    assert handle.current() is None
    with pytest.raises(ModelNotReadyError) as exc_info:
        handle.require()
    assert exc_info.value.status_code == 503


def test_refresh_publishes_new_versions(handle):
    """Test that each refresh publishes the next version."""
    assert handle.refresh()
    first = handle.current()
    assert handle.refresh()
    second = handle.current()

    assert first.version == 1
    assert second.version == 2
    assert first is not second
    assert handle.last_refresh_at is not None


def test_swap_returns_previous(handle):
    """Test that swap publishes a generation and hands back the old one."""
    first = handle.build()
    assert handle.swap(first) is None

    second = handle.build()
    assert handle.swap(second) is first
    assert handle.current() is second


def test_failed_refresh_keeps_previous_generation(handle):
    """Test that a failing build leaves the current generation in place."""
    assert handle.refresh()
    current = handle.current()

    def failing_builder(version):
        raise MemoryError("out of memory")

    handle._builder = failing_builder

    assert not handle.refresh()
    assert handle.current() is current
    assert isinstance(handle.last_refresh_error, RefreshError)
    assert handle.last_refresh_error.details["error_type"] == "MemoryError"
    assert not handle.is_refreshing


def test_concurrent_refresh_is_skipped(catalog, store):
    """Test that a refresh requested during another refresh returns False."""
    nested_results = []

    def builder(version):
        nested_results.append(handle.refresh())
        return build_generation(catalog, store, version)

    handle = ModelHandle(builder)

    assert handle.refresh()
    assert nested_results == [False]
    assert handle.current().version == 1


def test_generation_is_a_consistent_snapshot(catalog, store, handle):
    """Test that events recorded after a build don't leak into it."""
    handle.refresh()
    generation = handle.current()

    store.record("u3", "p2", InteractionKind.VIEW, duration=400)

    assert generation.matrix.cell("u3", "p2") == 0.0
    handle.refresh()
    assert handle.current().matrix.cell("u3", "p2") > 0.0


def test_refresh_policy():
    policy = RefreshPolicy(event_threshold=3, interval_seconds=60)

    assert not policy.is_due(2, 59)
    assert policy.is_due(3, 0)
    assert policy.is_due(0, 60)
    assert not RefreshPolicy(event_threshold=0, interval_seconds=0).is_due(1000, 10 ** 6)


def test_tracker_records_and_counts(catalog, store, handle):
    """Test that tracking stores the event and bumps the product counter."""
    tracker = InteractionTracker(store, catalog, handle, policy=RefreshPolicy(0, 0), background=False)

    assert tracker.track("u3", "p5", InteractionKind.ADD_TO_CART, {"source": "search"})

    event = store.events_for("u3")[-1]
    assert event.product_id == "p5"
    assert event.source == "search"
    assert catalog.get_product("p5").add_to_cart == 1
    assert tracker.events_since_refresh == 1


def test_tracker_parses_metadata_timestamp(catalog, store, handle):
    tracker = InteractionTracker(store, catalog, handle, policy=RefreshPolicy(0, 0), background=False)

    tracker.track("u1", "p2", "view", {"timestamp": "2024-01-01T00:00:00Z", "duration": 45})

    event = store.events_for("u1")[-1]
    assert event.timestamp.year == 2024
    assert event.duration == 45


def test_tracker_never_raises(catalog, store, handle):
    """Test that tracking failures are logged and reported as False."""
    tracker = InteractionTracker(store, catalog, handle, policy=RefreshPolicy(0, 0), background=False)

    assert not tracker.track("u1", "missing-product", InteractionKind.VIEW)
    assert not tracker.track("u1", "p1", "teleport")
    assert tracker.events_since_refresh == 2


def test_tracker_refreshes_after_event_threshold(catalog, store, handle):
    """Test that the Nth event triggers an inline refresh."""
    handle.refresh()
    tracker = InteractionTracker(
        store, catalog, handle, policy=RefreshPolicy(event_threshold=2, interval_seconds=0), background=False
    )

    tracker.track("u3", "p1", InteractionKind.VIEW)
    assert handle.current().version == 1

    tracker.track("u3", "p2", InteractionKind.VIEW)
    assert handle.current().version == 2
    assert tracker.events_since_refresh == 0


def test_tracker_refreshes_after_interval(catalog, store, handle):
    """Test that elapsed time alone makes a refresh due."""
    clock = FakeClock()
    handle.refresh()
    tracker = InteractionTracker(
        store,
        catalog,
        handle,
        policy=RefreshPolicy(event_threshold=0, interval_seconds=30),
        background=False,
        clock=clock,
    )

    assert not tracker.maybe_refresh()
    clock.now = 31.0
    assert tracker.maybe_refresh()
    assert handle.current().version == 2
    assert not tracker.maybe_refresh()


def test_tracker_background_refresh(catalog, store, handle):
    """Test that background refreshes publish a new generation."""
    handle.refresh()
    tracker = InteractionTracker(
        store, catalog, handle, policy=RefreshPolicy(event_threshold=1, interval_seconds=0), background=True
    )

    assert tracker.track("u2", "p4", InteractionKind.VIEW)
    tracker.wait_for_refresh(timeout=10)

    assert handle.current().version == 2
