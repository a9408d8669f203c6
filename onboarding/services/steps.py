from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from onboarding.constants.fields import SCHOOL_SETUP_STEPS, StepDefinition


def is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    return True


class StepInferenceEngine:
    """
    Текущий шаг мастера вычисляется только из снимка полей.

    Шаг = ранг первого шага, чьё поле ещё пустое; если заполнено всё, то последний
    (финальный) шаг. Поля, заполненные "вперёд" при пустом предыдущем, не засчитываются.
    """

    def __init__(self, steps: Iterable[StepDefinition] = SCHOOL_SETUP_STEPS) -> None:
        steps = tuple(sorted(steps, key=lambda s: s.rank))
        if not steps:
            raise ValueError("step list is empty")
        for expected, step in enumerate(steps, start=1):
            if step.rank != expected:
                raise ValueError(f"step ranks must be contiguous from 1, got {step.rank} at position {expected}")
        self._steps = steps

    @property
    def steps(self) -> tuple[StepDefinition, ...]:
        return self._steps

    @property
    def terminal_rank(self) -> int:
        return self._steps[-1].rank

    def current_step(self, snapshot: Mapping[str, Any]) -> int:
        for step in self._steps:
            if step.gate is not None and not is_filled(snapshot.get(step.gate)):
                return step.rank
        return self.terminal_rank

    def step_for(self, rank: int) -> StepDefinition:
        if not (1 <= rank <= len(self._steps)):
            raise IndexError(rank)
        return self._steps[rank - 1]

    def gating_field(self, snapshot: Mapping[str, Any]) -> str | None:
        return self.step_for(self.current_step(snapshot)).gate

    def is_complete(self, snapshot: Mapping[str, Any]) -> bool:
        return self.current_step(snapshot) == self.terminal_rank
