import concurrent.futures
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Sequence

from storefront.config import settings

log = logging.getLogger(__name__)


@dataclass
class BatchResult:
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, Exception] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


class BatchUpdateError(Exception):
    """Some requests of a fan-out batch failed; the ones that succeeded stay applied."""

    def __init__(self, operation: str, result: BatchResult):
        self.operation = operation
        self.result = result
        super().__init__(
            f"{operation}: {len(result.failed)} of {result.total} updates failed"
        )


def fan_out(fn: Callable[[str], Any], ids: Sequence[str], max_workers: int = None) -> BatchResult:
    """
    Issue fn(id) for every id concurrently and wait for all of them to settle.

    Failures are collected per id rather than aborting the batch, so the
    caller sees exactly which requests were applied.
    """
    result = BatchResult()
    if not ids:
        return result
    workers = min(max_workers or settings.BATCH_MAX_WORKERS, len(ids))
    outcomes: Dict[str, Exception] = {}
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = {ex.submit(fn, i): i for i in ids}
        for fut in concurrent.futures.as_completed(futures):
            exc = fut.exception()
            if exc is not None:
                log.warning("batch request for %s failed: %s", futures[fut], exc)
            outcomes[futures[fut]] = exc
    for i in ids:
        if outcomes.get(i) is None:
            result.succeeded.append(i)
        else:
            result.failed[i] = outcomes[i]
    return result
