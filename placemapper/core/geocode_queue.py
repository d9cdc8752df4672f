"""Sequential, rate-limited geocoding queue with human disambiguation."""
import logging
import re
import time
from collections import deque
from enum import Enum
from typing import Callable, Deque, List, Optional

from placemapper.core.ambiguity import AutoResolved, decide
from placemapper.core.config import API_THROTTLE_MS, AMBIGUITY_GAP
from placemapper.core.errors import InvalidInput, NetworkError, NoMatchError
from placemapper.core.geocoder import geocode
from placemapper.core.models import AmbiguityContext
from placemapper.core.registry import LocationRegistry
from placemapper.gazetteers.base import GeocodeProvider
from placemapper.utils.logging import log_error, log_structured

logger = logging.getLogger(__name__)

BATCH_SEPARATORS = re.compile(r";|\n")


class ProcessorState(Enum):
    """Drain states of the queue processor."""
    IDLE = "idle"
    DRAINING = "draining"
    FETCHING = "fetching"
    AMBIGUITY_PENDING = "ambiguity_pending"


def split_batch(raw_text: str) -> List[str]:
    """
    Split batch input into queries.

    Args:
        raw_text: User input with queries separated by ';' or newlines

    Returns:
        Trimmed, non-empty queries in input order
    """
    if not raw_text:
        return []
    return [part.strip() for part in BATCH_SEPARATORS.split(raw_text) if part.strip()]


def parse_batch(raw_text: str) -> List[str]:
    """Split batch input, raising InvalidInput when it holds no queries."""
    queries = split_batch(raw_text)
    if not queries:
        raise InvalidInput("Batch contains no place names")
    return queries


class QueueProcessor:
    """
    Drains queued queries one at a time through lookup, disambiguation and
    placement.

    At most one query is in flight. Each query waits for the configured
    delay measured from the moment it was taken off the queue, and the next
    query is not taken until the current one is fully resolved, including a
    pending human choice.
    """

    def __init__(
        self,
        provider: GeocodeProvider,
        registry: LocationRegistry,
        delay_ms: int = API_THROTTLE_MS,
        gap_threshold: float = AMBIGUITY_GAP,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        on_state_change: Optional[Callable[[ProcessorState], None]] = None,
    ):
        """
        Initialize queue processor.

        Args:
            provider: Geocoding provider used for every lookup
            registry: Registry receiving placements and unresolved entries
            delay_ms: Minimum wait between taking a query and looking it up
            gap_threshold: Importance lead needed to skip the human choice
            clock: Monotonic clock in seconds
            sleep: Blocking sleep in seconds
            on_state_change: Called with the new state after each transition
        """
        self.provider = provider
        self.registry = registry
        self.delay = delay_ms / 1000.0
        self.gap_threshold = gap_threshold
        self.clock = clock
        self.sleep = sleep
        self.on_state_change = on_state_change
        self.queue: Deque[str] = deque()
        self.current: Optional[str] = None
        self.ambiguity: Optional[AmbiguityContext] = None
        # Bumped for every pending choice; keys per-choice UI state
        self.ambiguity_serial = 0
        self.state = ProcessorState.IDLE
        self._due_at = 0.0

    @property
    def is_loading(self) -> bool:
        return self.state != ProcessorState.IDLE

    @property
    def pending_count(self) -> int:
        """Queries not yet finished, including the current one."""
        return len(self.queue) + (1 if self.current is not None else 0)

    def _set_state(self, state: ProcessorState) -> None:
        if state == self.state:
            return
        logger.debug("Queue state %s -> %s", self.state.value, state.value)
        self.state = state
        if self.on_state_change:
            self.on_state_change(state)

    def submit_batch(self, raw_text: str) -> int:
        """
        Replace the queue with the queries in raw_text and start draining.

        Args:
            raw_text: Batch input; blank input is ignored

        Returns:
            Number of queries queued (0 when the input was blank)
        """
        try:
            queries = parse_batch(raw_text)
        except InvalidInput:
            logger.debug("Ignoring blank batch")
            return 0

        self.queue = deque(queries)
        log_structured("info", "Batch submitted", queries=len(queries))
        if self.state == ProcessorState.IDLE:
            self._set_state(ProcessorState.DRAINING)
        return len(queries)

    def step(self) -> ProcessorState:
        """
        Take and process at most one query.

        A query taken off the queue stays current until it has been
        processed, so an interrupted step resumes the same query.

        Returns:
            State after the step
        """
        if self.state == ProcessorState.AMBIGUITY_PENDING:
            return self.state

        if self.current is None:
            if not self.queue:
                self._set_state(ProcessorState.IDLE)
                return self.state
            self.current = self.queue.popleft()
            self._due_at = self.clock() + self.delay
            self._set_state(ProcessorState.DRAINING)

        remaining = self._due_at - self.clock()
        if remaining > 0:
            self.sleep(remaining)

        query, self.current = self.current, None
        self._process(query)
        return self.state

    def drain(self) -> ProcessorState:
        """Step until the queue is empty or a human choice is needed."""
        while self.state not in (ProcessorState.IDLE, ProcessorState.AMBIGUITY_PENDING):
            self.step()
        return self.state

    def _advance(self) -> None:
        self._set_state(ProcessorState.DRAINING if self.queue else ProcessorState.IDLE)

    def _process(self, query: str) -> None:
        self._set_state(ProcessorState.FETCHING)
        try:
            candidates = geocode(self.provider, query)
            decision = decide(candidates, self.gap_threshold)
        except NetworkError as e:
            log_error(e, {"module": __name__, "function": "_process", "query": query})
            self.registry.add_unresolved(query, is_error=True)
            self._advance()
            return
        except NoMatchError:
            logger.info("No match for %r", query)
            self.registry.add_unresolved(query, is_error=False)
            self._advance()
            return
        except Exception as e:
            log_error(e, {"module": __name__, "function": "_process", "query": query, "unexpected": True})
            self.registry.add_unresolved(query, is_error=True)
            self._advance()
            return

        if isinstance(decision, AutoResolved):
            self.registry.place(decision.candidate, query)
            self._advance()
            return

        self.ambiguity = AmbiguityContext(query=query, choices=decision.choices)
        self.ambiguity_serial += 1
        log_structured("info", "Ambiguous query", query=query, choices=len(decision.choices))
        self._set_state(ProcessorState.AMBIGUITY_PENDING)

    def _take_ambiguity(self) -> AmbiguityContext:
        if self.ambiguity is None:
            raise RuntimeError("No ambiguity is pending")
        context, self.ambiguity = self.ambiguity, None
        return context

    def resolve_ambiguity(self, index: int) -> None:
        """
        Place the chosen candidate and resume draining.

        Args:
            index: Position in the pending choices; an out-of-range index
                places nothing
        """
        context = self._take_ambiguity()
        if 0 <= index < len(context.choices):
            self.registry.place(context.choices[index], context.query)
        else:
            logger.warning("Ignoring choice %s for %r: out of range", index, context.query)
        self._advance()

    def skip_ambiguity(self) -> None:
        """Leave the pending query unplaced and resume draining."""
        context = self._take_ambiguity()
        self.registry.add_unresolved(context.query, is_error=False)
        self._advance()
