"""CandidateExtractor — batches documents through a TopicExtractionPort.

Batches run on a small thread pool. Each call is raced against a timeout,
and new batches are only submitted while the run's soft deadline is not
near; batches already in flight still finish. A failed batch yields no
candidates and its documents stay pending for the next run.
"""

import collections
import concurrent.futures
import time
from dataclasses import dataclass, field

from ..errors import ExtractionCallFailure
from ..log import get_logger, log
from ..models import RawDocument
from .base import TopicExtractionPort
from .rules import ValidationRules, filter_candidates, matches_document


@dataclass
class BatchResult:
    index: int
    documents: list
    matches: list = field(default_factory=list)  # [(Candidate, [RawDocument, ...])]
    candidates_seen: int = 0
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def label(self) -> str:
        if not self.documents:
            return f"batch {self.index}"
        return f"batch {self.index} ({self.documents[0].id}..{self.documents[-1].id})"


@dataclass
class ExtractionOutcome:
    results: list = field(default_factory=list)
    deferred: list = field(default_factory=list)  # documents never submitted

    @property
    def failed(self) -> list:
        return [r for r in self.results if not r.ok]


class CandidateExtractor:
    def __init__(
        self,
        port: TopicExtractionPort,
        rules: ValidationRules | None = None,
        batch_size: int = 20,
        max_workers: int = 3,
        call_timeout: float = 30.0,
        deadline_seconds: float = 45.0,
        deadline_margin: float = 5.0,
        clock=time.monotonic,
    ):
        self.port = port
        self.rules = rules or ValidationRules()
        self.batch_size = max(1, int(batch_size))
        self.max_workers = max(1, int(max_workers))
        self.call_timeout = call_timeout
        self.deadline_seconds = deadline_seconds
        self.deadline_margin = deadline_margin
        self._clock = clock

    def batches(self, documents: list[RawDocument]) -> list[list[RawDocument]]:
        return [documents[i:i + self.batch_size] for i in range(0, len(documents), self.batch_size)]

    def process_batch(self, index: int, batch: list[RawDocument]) -> BatchResult:
        """Extract, validate, then match each surviving candidate to its documents."""
        candidates = self.port.extract(batch)
        kept = filter_candidates(candidates, self.rules)
        matches = [(c, [d for d in batch if matches_document(c, d)]) for c in kept]
        return BatchResult(index=index, documents=batch, matches=matches, candidates_seen=len(candidates))

    def _near_deadline(self, start: float) -> bool:
        if self.deadline_seconds is None:
            return False
        return self._clock() - start > self.deadline_seconds - self.deadline_margin

    def _collect(self, future, index: int, batch: list) -> BatchResult:
        try:
            return future.result()
        except Exception as e:
            get_logger("extraction").error(
                "Extraction failed for batch %d (%s..%s): %s",
                index, batch[0].id, batch[-1].id, e,
            )
            return BatchResult(index=index, documents=batch, error=e)

    def run(self, documents: list[RawDocument], on_result=None) -> ExtractionOutcome:
        """Process all batches; ``on_result`` is called in this thread as each one lands."""
        outcome = ExtractionOutcome()
        queue = collections.deque(enumerate(self.batches(documents)))
        in_flight = {}
        start = self._clock()
        stopping = False

        def record(result):
            outcome.results.append(result)
            if on_result is not None:
                on_result(result)

        pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="trending-extract"
        )
        try:
            while queue or in_flight:
                while queue and not stopping and len(in_flight) < self.max_workers:
                    if self._near_deadline(start):
                        stopping = True
                        log(f"Approaching deadline, not submitting {len(queue)} remaining batch(es)")
                        break
                    index, batch = queue.popleft()
                    future = pool.submit(self.process_batch, index, batch)
                    in_flight[future] = (index, batch, self._clock())
                if not in_flight:
                    break

                now = self._clock()
                wait_for = max(0.0, min(started + self.call_timeout - now for _, _, started in in_flight.values()))
                done, _ = concurrent.futures.wait(
                    in_flight, timeout=wait_for, return_when=concurrent.futures.FIRST_COMPLETED
                )
                for future in done:
                    index, batch, _ = in_flight.pop(future)
                    record(self._collect(future, index, batch))

                now = self._clock()
                for future, (index, batch, started) in list(in_flight.items()):
                    if future.done() or now - started < self.call_timeout:
                        continue
                    # The call keeps running in its thread; its result is ignored
                    in_flight.pop(future)
                    future.cancel()
                    error = ExtractionCallFailure(f"timed out after {self.call_timeout}s")
                    get_logger("extraction").error(
                        "Extraction timed out for batch %d (%s..%s)", index, batch[0].id, batch[-1].id
                    )
                    record(BatchResult(index=index, documents=batch, error=error))
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        outcome.deferred = [doc for _, batch in queue for doc in batch]
        outcome.results.sort(key=lambda r: r.index)
        return outcome
