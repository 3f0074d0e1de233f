"""
Assessment assembly.

Exposure filtering, candidate weighting and the constraint pipeline that
turns an eligible pool into a fixed-structure practice exam.
"""

from examcoach.assembly.assembler import StructuralAssembler, WeakQuota
from examcoach.assembly.difficulty import DifficultyBalancer, difficulty_histogram
from examcoach.assembly.exposure import ExposureFilter, ExposureRecorder
from examcoach.assembly.pipeline import AssemblyPipeline, ConstraintStep
from examcoach.assembly.selector import (
    CandidatePartition,
    WeightedCandidate,
    WeightedCandidateSelector,
)
from examcoach.assembly.state import AssemblyState
from examcoach.assembly.themes import ThemeDiversityRepairer

__all__ = [
    "AssemblyPipeline",
    "AssemblyState",
    "CandidatePartition",
    "ConstraintStep",
    "DifficultyBalancer",
    "ExposureFilter",
    "ExposureRecorder",
    "StructuralAssembler",
    "ThemeDiversityRepairer",
    "WeakQuota",
    "WeightedCandidate",
    "WeightedCandidateSelector",
    "difficulty_histogram",
]
