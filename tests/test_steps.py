from __future__ import annotations

import pytest

from onboarding.constants.fields import (
    ADDRESS,
    EMAIL,
    LOGO,
    NAME,
    PHONE_NUMBER,
    PREFIX,
    SCHOOL_SETUP_STEPS,
    STAMP,
    StepDefinition,
)
from onboarding.services.steps import StepInferenceEngine

GATES = (PHONE_NUMBER, ADDRESS, PREFIX, LOGO, STAMP)
FILE_VALUE = object()


def _snapshot(*filled: str) -> dict:
    snap = {NAME: "Acme", EMAIL: "a@acme.io", PHONE_NUMBER: "", ADDRESS: "", PREFIX: "", LOGO: None, STAMP: None}
    for name in filled:
        snap[name] = FILE_VALUE if name in (LOGO, STAMP) else "x"
    return snap


@pytest.fixture
def engine() -> StepInferenceEngine:
    return StepInferenceEngine()


def test_empty_form_is_step_one(engine):
    assert engine.current_step(_snapshot()) == 1
    assert engine.gating_field(_snapshot()) == PHONE_NUMBER


@pytest.mark.parametrize("filled_count, expected", [(0, 1), (1, 2), (2, 3), (3, 4), (4, 5), (5, 6)])
def test_forward_fill_advances_step(engine, filled_count, expected):
    assert engine.current_step(_snapshot(*GATES[:filled_count])) == expected


def test_all_filled_reports_terminal_step(engine):
    snap = _snapshot(*GATES)
    assert engine.current_step(snap) == engine.terminal_rank == 6
    assert engine.gating_field(snap) is None
    assert engine.is_complete(snap)


def test_out_of_order_fill_does_not_count(engine):
    # адрес и логотип заполнены, телефон пуст -> всё ещё шаг 1
    assert engine.current_step(_snapshot(ADDRESS, LOGO)) == 1
    # телефон есть, адреса нет -> шаг 2, хотя дальше всё заполнено
    assert engine.current_step(_snapshot(PHONE_NUMBER, PREFIX, LOGO, STAMP)) == 2


@pytest.mark.parametrize("cleared_rank", [1, 2, 3, 4, 5])
def test_clearing_a_gate_caps_step_at_its_rank(engine, cleared_rank):
    filled = [g for i, g in enumerate(GATES, start=1) if i != cleared_rank]
    assert engine.current_step(_snapshot(*filled)) <= cleared_rank
    assert engine.current_step(_snapshot(*filled)) == cleared_rank


def test_refilling_cleared_gate_is_history_independent(engine):
    forward = engine.current_step(_snapshot(PHONE_NUMBER, ADDRESS))

    snap = _snapshot(PHONE_NUMBER, ADDRESS, PREFIX)
    snap[ADDRESS] = ""
    snap[PREFIX] = ""
    assert engine.current_step(snap) == 2
    snap[ADDRESS] = "1 Main St"

    assert engine.current_step(snap) == forward == 3


def test_missing_keys_are_treated_as_empty(engine):
    assert engine.current_step({}) == 1
    assert engine.current_step({PHONE_NUMBER: "555"}) == 2


def test_step_labels_match_web_stepper(engine):
    assert [s.label for s in engine.steps] == ["Email", "Number", "Address", "Prefix", "Logo", ""]
    assert engine.step_for(6).gate is None
    with pytest.raises(IndexError):
        engine.step_for(7)


def test_non_contiguous_ranks_rejected():
    with pytest.raises(ValueError):
        StepInferenceEngine([StepDefinition(1, "A", "a"), StepDefinition(3, "C", None)])
    with pytest.raises(ValueError):
        StepInferenceEngine([])


def test_steps_are_sorted_by_rank():
    engine = StepInferenceEngine(reversed(SCHOOL_SETUP_STEPS))
    assert [s.rank for s in engine.steps] == [1, 2, 3, 4, 5, 6]
