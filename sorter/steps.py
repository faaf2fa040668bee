"""Step records emitted by the merge sort engine.

Every record is an immutable snapshot: run contents are stored as tuples and
the dataclasses are frozen, so a display can re-apply any step on its own.
``to_dict`` gives the JSON shape sent to the frontend (``"type"`` holds the kind).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, ClassVar

SPLIT = "split"
RUN_SORTED = "run-sorted"
MERGE_PROGRESS = "merge-progress"
COMPLETE = "complete"

Runs = tuple[tuple[float, ...], ...]


def freeze_runs(runs) -> Runs:
    return tuple(tuple(run) for run in runs)


@dataclass(frozen=True)
class StepRecord:
    kind: ClassVar[str] = ""

    index: int = 0
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "index": self.index, "timestamp": self.timestamp}


@dataclass(frozen=True)
class SplitStep(StepRecord):
    kind: ClassVar[str] = SPLIT

    runs: Runs = ()

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["runs"] = [list(r) for r in self.runs]
        return d


@dataclass(frozen=True)
class RunSortedStep(StepRecord):
    """One run finished sorting; ``runs`` is the whole generation at that moment."""

    kind: ClassVar[str] = RUN_SORTED

    runs: Runs = ()
    active_run: int = 0

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["runs"] = [list(r) for r in self.runs]
        d["active_run"] = self.active_run
        return d


@dataclass(frozen=True)
class MergeProgressStep(StepRecord):
    """One comparison inside a pairwise merge.

    ``left_index`` / ``right_index`` point at the last value consumed from each
    source run (-1 when nothing has been taken from that side yet).
    """

    kind: ClassVar[str] = MERGE_PROGRESS

    left: tuple[float, ...] = ()
    right: tuple[float, ...] = ()
    result: tuple[float, ...] = ()
    left_index: int = -1
    right_index: int = -1
    pass_index: int = 0
    pair_index: int = 0
    chosen: str = "left"  # side that supplied result[-1]

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d.update(
            left=list(self.left),
            right=list(self.right),
            result=list(self.result),
            left_index=self.left_index,
            right_index=self.right_index,
            pass_index=self.pass_index,
            pair_index=self.pair_index,
            chosen=self.chosen,
        )
        return d


@dataclass(frozen=True)
class CompleteStep(StepRecord):
    kind: ClassVar[str] = COMPLETE

    runs: Runs = ()
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        d = super().to_dict()
        d["runs"] = [list(r) for r in self.runs]
        d["cancelled"] = self.cancelled
        return d


_BY_KIND: dict[str, type[StepRecord]] = {
    cls.kind: cls for cls in (SplitStep, RunSortedStep, MergeProgressStep, CompleteStep)
}


def step_from_dict(d: dict[str, Any]) -> StepRecord:
    """Rebuild a record from the dict produced by ``to_dict``."""
    kind = d.get("type")
    cls = _BY_KIND.get(kind)
    if cls is None:
        raise ValueError(f"unknown step type {kind!r}")

    common = {"index": d.get("index", 0), "timestamp": d.get("timestamp", 0.0)}
    if cls is MergeProgressStep:
        return MergeProgressStep(
            left=tuple(d["left"]),
            right=tuple(d["right"]),
            result=tuple(d["result"]),
            left_index=d["left_index"],
            right_index=d["right_index"],
            pass_index=d.get("pass_index", 0),
            pair_index=d.get("pair_index", 0),
            chosen=d.get("chosen", "left"),
            **common,
        )
    if cls is RunSortedStep:
        return RunSortedStep(runs=freeze_runs(d["runs"]), active_run=d["active_run"], **common)
    if cls is CompleteStep:
        return CompleteStep(runs=freeze_runs(d["runs"]), cancelled=d.get("cancelled", False), **common)
    return SplitStep(runs=freeze_runs(d["runs"]), **common)
