"""Step-through playback of a recorded trace (prev / next / play)."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Sequence

from .steps import MergeProgressStep, StepRecord, step_from_dict


def snapshot(step: StepRecord) -> dict[str, Any]:
    """What a display needs to draw *step*, independent of any other step."""
    if isinstance(step, MergeProgressStep):
        return {
            "left": list(step.left),
            "right": list(step.right),
            "result": list(step.result),
            "active": (step.left_index, step.right_index),
        }
    return {
        "runs": [list(r) for r in getattr(step, "runs", ())],
        "active_run": getattr(step, "active_run", None),
    }


class TracePlayer:
    """Cursor over a recorded trace. Accepts step records or their dicts."""

    def __init__(self, steps: Sequence[StepRecord | dict]):
        self.steps = [s if isinstance(s, StepRecord) else step_from_dict(s) for s in steps]
        self.position = 0
        self.playing = False

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def current(self) -> StepRecord | None:
        if not self.steps:
            return None
        return self.steps[self.position]

    @property
    def at_start(self) -> bool:
        return self.position <= 0

    @property
    def at_end(self) -> bool:
        return self.position >= len(self.steps) - 1

    def seek(self, position: int) -> StepRecord | None:
        if self.steps:
            self.position = max(0, min(position, len(self.steps) - 1))
        return self.current

    def next(self) -> StepRecord | None:
        if not self.at_end:
            self.position += 1
        return self.current

    def prev(self) -> StepRecord | None:
        if not self.at_start:
            self.position -= 1
        return self.current

    def reset(self) -> None:
        self.position = 0
        self.playing = False

    def stop(self) -> None:
        self.playing = False

    async def play(self, on_step: Callable[[StepRecord], Any], delay: float = 0.0) -> int:
        """
        Walk forward to the end, handing each step to *on_step*.
        Starting at the end rewinds first. Returns the number of steps shown.
        """
        if not self.steps:
            return 0
        if self.at_end:
            self.position = 0

        self.playing = True
        shown = 0
        while self.playing and not self.at_end:
            step = self.next()
            res = on_step(step)
            if inspect.isawaitable(res):
                await res
            shown += 1
            if delay:
                await asyncio.sleep(delay)
        self.playing = False
        return shown
