# sorter/external_merge_sort.py
import asyncio
import inspect
import logging
import math

from .auto_config import resolve_run_size
from .runs import sort_run, split_into_runs
from .steps import CompleteStep, MergeProgressStep, RunSortedStep, SplitStep, freeze_runs

logger = logging.getLogger(__name__)

# Tune these for visualization vs payload size
PAUSE_POLL_INTERVAL = 0.1       # seconds between checks while paused
VISUALIZE_SAMPLE_LIMIT = 300    # max values sorted by the visualize endpoint

# progress milestones (percent)
PROGRESS_SPLIT = 10
PROGRESS_SORT_START = 30
PROGRESS_MERGE_START = 50
PROGRESS_MERGE_END = 90


class ExternalMergeSorter:
    """
    Run-based merge sort over an in-memory sequence that reports every phase
    transition and every merge comparison as a step record.

    An instance owns its pause/cancel flags; it must not be used for two
    sort() calls at the same time. sort() does not clear the flags, so a
    cancel() or pause() issued before the call starts still applies; call
    reset() to reuse an instance after a cancelled run.
    """

    def __init__(self):
        self.paused = False
        self.cancelled = False

        self._trace = []  # ordered step records, only filled when record_trace=True
        self._record = False
        self._on_step = None
        self._on_progress = None
        self._step_index = 0
        self._progress = 0.0

    # ---------- control ----------
    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def cancel(self):
        self.cancelled = True
        self.paused = False

    def reset(self):
        self.paused = False
        self.cancelled = False
        self.clear_trace()

    def get_trace(self):
        return list(self._trace)

    def clear_trace(self):
        self._trace = []

    # ---------- helpers ----------
    @property
    def _observed(self):
        return self._record or self._on_step is not None

    async def _emit(self, step_cls, **fields):
        step = step_cls(index=self._step_index, **fields)
        self._step_index += 1
        if self._record:
            self._trace.append(step)
        if self._on_step is not None:
            res = self._on_step(step)
            if inspect.isawaitable(res):
                await res
        return step

    def _report(self, percent, message):
        # never go backwards, never past 100
        percent = min(100.0, max(self._progress, float(percent)))
        self._progress = percent
        if self._on_progress is not None:
            self._on_progress(percent, message)

    async def _wait_while_paused(self):
        while self.paused and not self.cancelled:
            await asyncio.sleep(PAUSE_POLL_INTERVAL)

    # ---------- phase 1 + 2: run generation ----------
    async def generate_runs(self, values, run_size):
        runs = split_into_runs(values, run_size)
        self._report(PROGRESS_SPLIT, f"Split {len(values)} values into {len(runs)} runs")
        logger.info("split %d values into %d runs of size %d", len(values), len(runs), run_size)
        if self._observed:
            await self._emit(SplitStep, runs=freeze_runs(runs))

        self._report(PROGRESS_SORT_START, "Sorting runs...")
        for i in range(len(runs)):
            if self.cancelled:
                logger.info("cancelled while sorting run %d/%d", i + 1, len(runs))
                break
            runs[i] = sort_run(runs[i])
            self._report(
                PROGRESS_SORT_START + (i + 1) / len(runs) * (PROGRESS_MERGE_START - PROGRESS_SORT_START),
                f"Sorted run {i + 1}/{len(runs)}",
            )
            if self._observed:
                await self._emit(RunSortedStep, runs=freeze_runs(runs), active_run=i)
        return runs

    # ---------- two-way merge (with detailed events) ----------
    async def merge_runs(self, left, right, pass_index=0, pair_index=0):
        """
        Streaming two-pointer merge of two sorted runs.
        Ties go to the left run. Returns None if cancelled before the merge finished.
        """
        result = []
        i = j = 0
        # the sources never change during a merge, every step shares one copy
        left_snapshot = right_snapshot = None
        if self._observed:
            left_snapshot, right_snapshot = tuple(left), tuple(right)

        while i < len(left) and j < len(right):
            if self.cancelled:
                return None
            await self._wait_while_paused()
            if self.cancelled:
                return None

            if left[i] <= right[j]:
                result.append(left[i])
                i += 1
                chosen = "left"
            else:
                result.append(right[j])
                j += 1
                chosen = "right"

            if self._observed:
                await self._emit(
                    MergeProgressStep,
                    left=left_snapshot,
                    right=right_snapshot,
                    result=tuple(result),
                    left_index=i - 1,
                    right_index=j - 1,
                    pass_index=pass_index,
                    pair_index=pair_index,
                    chosen=chosen,
                )

        # one side is exhausted, the rest of the other is already in order
        result.extend(left[i:])
        result.extend(right[j:])
        logger.debug("pass %d pair %d merged %d values", pass_index, pair_index, len(result))
        return result

    # ---------- one merge pass (pairing by position) ----------
    async def merge_pass(self, runs, pass_index, estimated_passes=1):
        """
        Merge runs 0&1, 2&3, ...; an odd trailing run is carried over unchanged.
        Returns the next generation, or None if cancelled during the pass.
        """
        new_runs = []
        pairs = math.ceil(len(runs) / 2)

        for pair_index, i in enumerate(range(0, len(runs), 2)):
            if self.cancelled:
                return None

            if i + 1 < len(runs):
                merged = await self.merge_runs(runs[i], runs[i + 1], pass_index, pair_index)
                if merged is None:
                    return None
                new_runs.append(merged)
            else:
                new_runs.append(runs[i])

            done = pass_index + (pair_index + 1) / pairs
            self._report(
                min(PROGRESS_MERGE_END,
                    PROGRESS_MERGE_START + done / estimated_passes * (PROGRESS_MERGE_END - PROGRESS_MERGE_START)),
                f"Merge pass {pass_index + 1}...",
            )

        return new_runs

    # ---------- multi-pass merge ----------
    async def multi_pass_merge(self, runs):
        # ceil(log2(runs + 1)) slightly overestimates, progress is advisory
        estimated = max(1, math.ceil(math.log2(len(runs) + 1)))
        self._report(PROGRESS_MERGE_START, "Merging runs...")

        pass_index = 0
        while len(runs) > 1 and not self.cancelled:
            logger.info("merge pass %d: %d runs", pass_index + 1, len(runs))
            new_runs = await self.merge_pass(runs, pass_index, estimated)
            if new_runs is None:
                logger.info("cancelled during merge pass %d", pass_index + 1)
                break
            runs = new_runs
            pass_index += 1
        return runs

    # ---------- main pipeline ----------
    async def sort(self, sequence, run_size=None, on_progress=None, on_step=None, record_trace=False):
        """
        Sort *sequence* and return a new list in non-decreasing order.

        on_progress(percent, message) is purely informational. on_step(step) is
        called once per step record; if it returns an awaitable the engine waits
        for it before going on. A cancelled call still returns, with a
        best-effort result that need not be sorted.
        """
        # bad configuration fails before anything is emitted
        run_size = resolve_run_size(run_size)

        # control flags are left alone: a cancel/pause sent before this call counts
        self._trace = []
        self._record = bool(record_trace)
        self._on_step = on_step
        self._on_progress = on_progress
        self._step_index = 0
        self._progress = 0.0

        values = list(sequence)
        if len(values) <= 1:
            return values

        self._report(0, "Starting sort...")
        runs = await self.generate_runs(values, run_size)

        if not self.cancelled:
            runs = await self.multi_pass_merge(runs)

        if self.cancelled:
            self._report(100, "Cancelled")
        else:
            self._report(100, "Complete!")
        logger.info("sort finished: %d values, cancelled=%s", len(values), self.cancelled)
        if self._observed:
            await self._emit(CompleteStep, runs=freeze_runs(runs), cancelled=self.cancelled)

        return list(runs[0]) if runs else []


def sample_values(values, limit=VISUALIZE_SAMPLE_LIMIT):
    """
    Pick *limit* values spread evenly over *values*, keeping input order.
    The first value is always kept; short inputs come back whole.
    """
    n = len(values)
    if n <= limit:
        return list(values)
    return [values[k * n // limit] for k in range(limit)]


async def quick_sort(data, on_progress=None):
    """Plain sort without any step reporting."""
    if on_progress is not None:
        on_progress(0, "Starting sort...")
    result = sorted(data)
    if on_progress is not None:
        on_progress(100, "Complete!")
    return result


# wrapper functions used by server and scripts
def external_merge_sort(data, run_size=None):
    """Blocking helper: returns (sorted values, list of step dicts)."""
    sorter = ExternalMergeSorter()
    result = asyncio.run(sorter.sort(data, run_size=run_size, record_trace=True))
    return result, [s.to_dict() for s in sorter.get_trace()]


async def external_merge_sort_visualize(data, run_size=None, limit=VISUALIZE_SAMPLE_LIMIT):
    """
    Sort a strided sample of *data* (at most *limit* values) and return the
    step dicts, preceded by a "meta" dict describing the sample.
    """
    values = list(data)
    sample = sample_values(values, limit)
    run_size = resolve_run_size(run_size)

    sorter = ExternalMergeSorter()
    await sorter.sort(sample, run_size=run_size, record_trace=True)

    meta = {
        "type": "meta",
        "n": len(values),
        "sample_size": len(sample),
        "run_size": run_size,
        "runs_count": math.ceil(len(sample) / run_size),
    }
    return [meta] + [s.to_dict() for s in sorter.get_trace()]
