"""
Capability protocols for pluggable observation (emission) models.

The HMM never looks inside an observation model. Anything that provides
these methods can be trained; see ``seqhmm.emissions`` for a categorical
implementation.

Two optional batch methods are used when present:

- ``ObservationModel.output_probabilities(sequence)`` returns the (T x K)
  array of P(o_t | s) for a whole sequence.
- ``ObservationCounts.increment_sequence(sequence, gamma)`` adds the
  (T x K) state posteriors of a whole sequence.

Both should do their work in numpy so E-step worker threads can run
without holding the GIL.
"""

from typing import Any, BinaryIO, Protocol, TypeVar, runtime_checkable


Counts = TypeVar('Counts', bound='ObservationCounts')


@runtime_checkable
class ObservationCounts(Protocol):
    """Soft counts for re-estimating an observation model."""

    def increment(self, observation: Any, state: int, weight: float) -> None:
        """Add ``weight`` to the count of ``observation`` under ``state``."""
        ...

    def __iadd__(self: Counts, other: Counts) -> Counts:
        """Merge another accumulator into this one (associative, commutative)."""
        ...


@runtime_checkable
class ObservationModel(Protocol):
    """P(observation | state) plus everything EM needs to re-estimate it."""

    @property
    def n_states(self) -> int:
        ...

    def probability(self, observation: Any, state: int) -> float:
        ...

    def expected_counts(self) -> ObservationCounts:
        """Fresh, all-zero counts shaped for this model."""
        ...

    @classmethod
    def from_counts(cls, counts: ObservationCounts) -> 'ObservationModel':
        """Maximum-likelihood model for the given counts."""
        ...

    def distribution(self, state: int) -> Any:
        """Per-state distribution, for inspection."""
        ...

    def save(self, stream: BinaryIO) -> None:
        ...

    @classmethod
    def load(cls, stream: BinaryIO) -> 'ObservationModel':
        ...
