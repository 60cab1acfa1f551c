"""
Exception hierarchy for seqhmm.
"""

from typing import List, Optional


class HMMError(Exception):
    """Base exception for seqhmm."""
    pass


class ConfigurationError(HMMError):
    """Inconsistent model construction (state counts, shapes, priors)."""
    pass


class SequenceError(HMMError, ValueError):
    """Invalid training input, e.g. an empty sequence."""
    pass


class ZeroProbabilityError(HMMError):
    """A trellis column has zero total probability."""
    pass


class ModelDivergenceError(HMMError):
    """
    Log likelihood decreased between two EM iterations.

    EM never decreases the data likelihood, so this always points at an
    implementation or numerical problem. The full history is attached so
    callers can decide whether to log and stop or escalate.
    """

    def __init__(self, iteration: int, previous: float, current: float,
                 history: Optional[List[float]] = None):
        self.iteration = iteration
        self.previous = previous
        self.current = current
        self.history = list(history) if history is not None else []
        super().__init__(
            f"Log likelihood did not improve at iteration {iteration}: "
            f"{current} < {previous}"
        )
