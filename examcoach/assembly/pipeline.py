"""
Assembly pipeline.

Each constraint step rewrites the shared AssemblyState and is safe to run
twice; the default order is:

    select-candidates -> structure -> difficulty -> themes

Steps can be run alone in tests (e.g. only ``themes`` to exercise the
rebuild path) or replaced by a host.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from loguru import logger

from examcoach.assembly.assembler import StructuralAssembler
from examcoach.assembly.difficulty import DifficultyBalancer
from examcoach.assembly.selector import WeightedCandidateSelector
from examcoach.assembly.state import AssemblyState
from examcoach.assembly.themes import ThemeDiversityRepairer
from examcoach.core.bank import QuestionBank
from examcoach.core.engine_config import EngineConfig


class ConstraintStep(Protocol):
    name: str

    def apply(self, state: AssemblyState) -> None:
        ...


class AssemblyPipeline:
    """Runs constraint steps in order over one AssemblyState."""

    def __init__(self, steps: Sequence[ConstraintStep]):
        self.steps = list(steps)

    @classmethod
    def default(cls, bank: QuestionBank, config: EngineConfig) -> AssemblyPipeline:
        return cls(
            [
                WeightedCandidateSelector(bank, config),
                StructuralAssembler(config),
                DifficultyBalancer(config),
                ThemeDiversityRepairer(config),
            ]
        )

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]

    def run(self, state: AssemblyState) -> AssemblyState:
        for step in self.steps:
            step.apply(state)
            logger.debug(
                f"Step {step.name}: "
                + ", ".join(f"{b.value}={len(qs)}" for b, qs in state.buckets.items())
            )
        return state
