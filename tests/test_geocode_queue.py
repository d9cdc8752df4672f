"""Tests for the sequential geocoding queue."""
import pytest
from unittest.mock import MagicMock, patch
from conftest import FakeProvider, make_candidate
from placemapper.core.errors import InvalidInput
from placemapper.core.geocode_queue import ProcessorState, QueueProcessor, parse_batch, split_batch
from placemapper.gazetteers.nominatim import NominatimProvider


def test_split_batch():
    """Test splitting batch input on semicolons and newlines."""
    assert split_batch("Paris; Berlin\nNairobi") == ["Paris", "Berlin", "Nairobi"]
    assert split_batch("  Paris  ;;\n\n ; Berlin ") == ["Paris", "Berlin"]
    assert split_batch("São Paulo, Brazil") == ["São Paulo, Brazil"]
    assert split_batch("Paris\r\nBerlin") == ["Paris", "Berlin"]
    assert split_batch("") == []
    assert split_batch("  ;\n ; ") == []


def test_parse_batch_rejects_blank_input():
    """Test parse_batch raises InvalidInput when nothing is left after splitting."""
    assert parse_batch("Paris;Berlin") == ["Paris", "Berlin"]
    with pytest.raises(InvalidInput):
        parse_batch(" ; \n ")


def test_submit_batch_queues_in_order(processor):
    """Test the queue holds every non-empty segment in input order."""
    count = processor.submit_batch("Nairobi;\n Berlin ; Paris")

    assert count == 3
    assert list(processor.queue) == ["Nairobi", "Berlin", "Paris"]
    assert processor.state == ProcessorState.DRAINING
    assert processor.is_loading


def test_submit_blank_batch_is_ignored(processor, provider):
    """Test whitespace-only input leaves the processor idle."""
    assert processor.submit_batch("  ;\n  ") == 0
    assert processor.state == ProcessorState.IDLE
    assert not processor.is_loading
    assert processor.step() == ProcessorState.IDLE
    assert provider.calls == []


def test_drain_paris_and_unknown_place(processor, registry):
    """Test one placement and one not-found entry after draining."""
    processor.submit_batch("Paris; Nowhereistan123xyz")

    assert processor.drain() == ProcessorState.IDLE
    assert not processor.is_loading
    assert len(registry) == 1
    assert registry.locations[0].label == "Paris"
    assert registry.locations[0].country_code == "FRA"
    assert len(registry.unresolved) == 1
    assert registry.unresolved[0].query == "Nowhereistan123xyz"
    assert registry.unresolved[0].is_error is False


def test_queries_processed_in_submission_order(processor, provider):
    """Test lookups happen strictly in input order."""
    processor.submit_batch("Berlin\nNairobi;Paris")
    processor.drain()

    assert provider.calls == ["Berlin", "Nairobi", "Paris"]


def test_delay_before_every_lookup(processor, clock):
    """Test each query waits the full delay after it is taken off the queue."""
    processor.submit_batch("Berlin; Nairobi")
    processor.drain()

    assert clock.sleeps == [pytest.approx(1.0), pytest.approx(1.0)]


def test_step_processes_one_query(processor, provider, registry):
    """Test a single step takes exactly one query."""
    processor.submit_batch("Berlin; Nairobi")

    assert processor.step() == ProcessorState.DRAINING
    assert provider.calls == ["Berlin"]
    assert list(processor.queue) == ["Nairobi"]
    assert len(registry) == 1

    assert processor.step() == ProcessorState.IDLE
    assert provider.calls == ["Berlin", "Nairobi"]


def test_interrupted_step_resumes_same_query(provider, registry, clock):
    """Test a step interrupted during the delay keeps its query and the remaining wait."""
    calls = []

    def interrupting_sleep(seconds):
        calls.append(seconds)
        if len(calls) == 1:
            raise KeyboardInterrupt
        clock.sleep(seconds)

    processor = QueueProcessor(provider, registry, delay_ms=1000, clock=clock, sleep=interrupting_sleep)
    processor.submit_batch("Berlin; Nairobi")

    with pytest.raises(KeyboardInterrupt):
        processor.step()
    assert processor.current == "Berlin"
    assert list(processor.queue) == ["Nairobi"]
    assert provider.calls == []

    clock.now += 0.6
    processor.step()
    assert calls[1] == pytest.approx(0.4)
    assert provider.calls == ["Berlin"]
    assert processor.current is None


def test_no_wait_when_delay_already_elapsed(provider, registry, clock):
    """Test the delay is measured from the pop, not from the step call."""
    processor = QueueProcessor(provider, registry, delay_ms=0, clock=clock, sleep=clock.sleep)
    processor.submit_batch("Berlin")
    processor.drain()

    assert clock.sleeps == []
    assert len(registry) == 1


def test_ambiguity_pauses_drain(processor, provider):
    """Test close candidates suspend the queue with a choice context."""
    processor.submit_batch("Springfield; Berlin")

    assert processor.drain() == ProcessorState.AMBIGUITY_PENDING
    assert processor.is_loading
    assert processor.ambiguity.query == "Springfield"
    assert 1 < len(processor.ambiguity.choices) <= 5
    assert provider.calls == ["Springfield"]

    # Nothing moves while the choice is pending
    assert processor.step() == ProcessorState.AMBIGUITY_PENDING
    assert processor.drain() == ProcessorState.AMBIGUITY_PENDING
    assert provider.calls == ["Springfield"]


def test_skip_ambiguity_records_unresolved(processor, provider, registry):
    """Test skipping leaves the query unplaced and resumes the queue."""
    processor.submit_batch("Springfield; Berlin")
    processor.drain()

    processor.skip_ambiguity()

    assert processor.ambiguity is None
    assert processor.state == ProcessorState.DRAINING
    assert [e.query for e in registry.unresolved] == ["Springfield"]
    assert registry.unresolved[0].is_error is False
    assert len(registry) == 0

    assert processor.drain() == ProcessorState.IDLE
    assert provider.calls == ["Springfield", "Berlin"]
    assert [loc.label for loc in registry.locations] == ["Berlin"]


def test_resolve_ambiguity_places_choice(processor, registry):
    """Test choosing a candidate places it under the original query."""
    processor.submit_batch("Springfield")
    processor.drain()

    processor.resolve_ambiguity(1)

    assert processor.state == ProcessorState.IDLE
    assert len(registry) == 1
    location = registry.locations[0]
    assert location.full_name == "Springfield, Missouri, United States"
    assert location.query == "Springfield"
    assert registry.unresolved == []


def test_resolve_ambiguity_out_of_range_places_nothing(processor, registry):
    """Test an invalid choice index resumes without placing."""
    processor.submit_batch("Springfield; Berlin")
    processor.drain()

    processor.resolve_ambiguity(9)

    assert len(registry) == 0
    assert registry.unresolved == []
    assert processor.drain() == ProcessorState.IDLE
    assert [loc.label for loc in registry.locations] == ["Berlin"]


def test_resolution_without_pending_ambiguity_raises(processor):
    """Test resolve and skip require a pending choice."""
    with pytest.raises(RuntimeError):
        processor.resolve_ambiguity(0)
    with pytest.raises(RuntimeError):
        processor.skip_ambiguity()


def test_ambiguity_surfaces_at_most_five_choices(registry, clock):
    """Test only the top five close candidates are offered."""
    candidates = [make_candidate(f"Santa Cruz {i}", importance=0.5) for i in range(8)]
    provider = FakeProvider({"Santa Cruz": candidates})
    processor = QueueProcessor(provider, registry, clock=clock, sleep=clock.sleep)

    processor.submit_batch("Santa Cruz")
    processor.drain()

    assert [c.display_name for c in processor.ambiguity.choices] == [f"Santa Cruz {i}" for i in range(5)]


def test_duplicate_results_collapse_before_deciding(registry, clock):
    """Test duplicates of the top match do not force a choice."""
    provider = FakeProvider({"Lima": [
        make_candidate("Lima, Peru", importance=0.8, country_code="PE"),
        make_candidate("Lima, Peru", importance=0.8, country_code="PE"),
    ]})
    processor = QueueProcessor(provider, registry, clock=clock, sleep=clock.sleep)

    processor.submit_batch("Lima")

    assert processor.drain() == ProcessorState.IDLE
    assert [loc.label for loc in registry.locations] == ["Lima"]


def test_network_error_marks_query_and_continues(processor, registry):
    """Test a failed lookup becomes an error entry and the batch goes on."""
    processor.submit_batch("Offline; Berlin")
    processor.drain()

    assert len(registry.unresolved) == 1
    assert registry.unresolved[0].query == "Offline"
    assert registry.unresolved[0].is_error is True
    assert [loc.label for loc in registry.locations] == ["Berlin"]


def test_state_change_notifications(provider, registry, clock):
    """Test listeners see every transition of one query."""
    states = []
    processor = QueueProcessor(provider, registry, clock=clock, sleep=clock.sleep,
                               on_state_change=states.append)

    processor.submit_batch("Berlin")
    processor.drain()

    assert states == [ProcessorState.DRAINING, ProcessorState.FETCHING, ProcessorState.IDLE]


def test_resubmit_while_ambiguity_pending(processor, provider):
    """Test a new batch replaces the queue without disturbing the pending choice."""
    processor.submit_batch("Springfield; Paris")
    processor.drain()

    processor.submit_batch("Berlin; Nairobi")

    assert processor.state == ProcessorState.AMBIGUITY_PENDING
    assert list(processor.queue) == ["Berlin", "Nairobi"]

    processor.skip_ambiguity()
    processor.drain()
    assert provider.calls == ["Springfield", "Berlin", "Nairobi"]


def test_unexpected_provider_failure_marks_query_and_continues(registry, clock):
    """Test an unexpected provider exception still records an error and moves on."""
    provider = FakeProvider({
        "Paris": AttributeError("'str' object has no attribute 'get'"),
        "Berlin": [make_candidate("Berlin, Deutschland", country_code="DE")],
    })
    processor = QueueProcessor(provider, registry, clock=clock, sleep=clock.sleep)
    processor.submit_batch("Paris; Berlin")

    assert processor.step() == ProcessorState.DRAINING
    assert processor.current is None
    assert [(e.query, e.is_error) for e in registry.unresolved] == [("Paris", True)]

    assert processor.drain() == ProcessorState.IDLE
    assert [loc.label for loc in registry.locations] == ["Berlin"]


@patch("placemapper.gazetteers.nominatim.requests.get")
def test_error_object_response_does_not_stall_queue(mock_get, registry, clock):
    """Test a 200 response with an error body becomes an error entry."""
    response = MagicMock(status_code=200, ok=True)
    response.json.return_value = {"error": "Unable to geocode"}
    mock_get.return_value = response
    processor = QueueProcessor(NominatimProvider(), registry, clock=clock, sleep=clock.sleep)

    processor.submit_batch("Paris; Berlin")

    assert processor.step() == ProcessorState.DRAINING
    assert list(processor.queue) == ["Berlin"]
    assert [(e.query, e.is_error) for e in registry.unresolved] == [("Paris", True)]
    assert processor.drain() == ProcessorState.IDLE
    assert len(registry.unresolved) == 2


def test_ambiguity_serial_increases_per_pending_choice(processor, registry):
    """Test every pending choice gets a new serial, even after removals."""
    assert processor.ambiguity_serial == 0

    processor.submit_batch("Springfield")
    processor.drain()
    assert processor.ambiguity_serial == 1
    processor.resolve_ambiguity(0)
    registry.remove(registry.locations[0].id)

    processor.submit_batch("Springfield")
    processor.drain()
    assert processor.ambiguity_serial == 2
    assert processor.state == ProcessorState.AMBIGUITY_PENDING
