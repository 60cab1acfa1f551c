"""Parallel Baum-Welch iteration and the work-dispatch primitive."""

from seqhmm.training.em import (
    expectation_maximization,
    expectation_step,
    maximization_step,
)
from seqhmm.training.parallel import ProgressCounter, reduction

__all__ = [
    'expectation_maximization',
    'expectation_step',
    'maximization_step',
    'ProgressCounter',
    'reduction',
]
