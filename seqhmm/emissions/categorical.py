"""
Categorical observation model: each state emits one of ``n_symbols``
integer symbol ids.
"""

from typing import BinaryIO, Optional

import numpy as np

from seqhmm.core.markov_model import DirichletPrior
from seqhmm.exceptions import ConfigurationError


class CategoricalCounts:
    """(n_states x n_symbols) soft emission counts."""

    def __init__(self, n_states: int, n_symbols: int):
        self.counts = np.zeros((n_states, n_symbols))

    @property
    def n_states(self) -> int:
        return self.counts.shape[0]

    @property
    def n_symbols(self) -> int:
        return self.counts.shape[1]

    def increment(self, observation: int, state: int, weight: float):
        self.counts[state, observation] += weight

    def increment_sequence(self, sequence, gamma: np.ndarray):
        """Add every row of the (T x K) posterior ``gamma`` under its symbol."""
        np.add.at(self.counts.T, np.asarray(sequence, dtype=int), gamma)

    def __iadd__(self, other: 'CategoricalCounts') -> 'CategoricalCounts':
        if other.counts.shape != self.counts.shape:
            raise ValueError(
                f"Cannot merge counts of shape {other.counts.shape} into {self.counts.shape}"
            )
        self.counts += other.counts
        return self


class CategoricalObservations:
    """
    P(symbol | state) as an (n_states x n_symbols) emission matrix.

    Args:
        n_states: Number of hidden states
        n_symbols: Size of the symbol alphabet
        probabilities: Explicit emission matrix; rows must sum to 1
        rng: If given (and no matrix), rows are drawn from ``prior``
        prior: Dirichlet prior over symbols (default: symmetric, alpha=1);
            requires ``rng``

    With neither ``probabilities`` nor ``rng`` every state is uniform.
    """

    def __init__(self, n_states: int, n_symbols: int,
                 probabilities: Optional[np.ndarray] = None,
                 rng: Optional[np.random.Generator] = None,
                 prior: Optional[DirichletPrior] = None):
        if prior is not None and rng is None:
            raise ConfigurationError("A Dirichlet prior needs an rng to draw emissions from")

        if probabilities is None:
            if rng is not None:
                if prior is None:
                    prior = DirichletPrior.symmetric(n_symbols)
                if prior.n_states != n_symbols:
                    raise ConfigurationError(
                        f"Prior covers {prior.n_states} symbols, model has {n_symbols}"
                    )
                probabilities = prior.sample(rng, size=n_states)
            else:
                probabilities = np.full((n_states, n_symbols), 1.0 / n_symbols)

        probabilities = np.array(probabilities, dtype=float)
        if probabilities.shape != (n_states, n_symbols):
            raise ConfigurationError(
                f"Emission matrix shape {probabilities.shape} doesn't match "
                f"({n_states}, {n_symbols})"
            )
        if np.any(probabilities < 0) or not np.allclose(probabilities.sum(axis=1), 1.0):
            raise ConfigurationError("Emission matrix rows must be distributions")

        self.emissionprob_ = probabilities
        self.emissionprob_.flags.writeable = False

    @property
    def n_states(self) -> int:
        return self.emissionprob_.shape[0]

    @property
    def n_symbols(self) -> int:
        return self.emissionprob_.shape[1]

    def probability(self, observation: int, state: int) -> float:
        return self.emissionprob_[state, observation]

    def output_probabilities(self, sequence) -> np.ndarray:
        """(T x K) array of P(sequence[t] | s)."""
        return self.emissionprob_[:, np.asarray(sequence, dtype=int)].T

    def expected_counts(self) -> CategoricalCounts:
        return CategoricalCounts(self.n_states, self.n_symbols)

    @classmethod
    def from_counts(cls, counts: CategoricalCounts) -> 'CategoricalObservations':
        """Row-normalized counts; a state with no mass becomes uniform."""
        sums = counts.counts.sum(axis=1, keepdims=True)
        probs = np.where(sums > 0,
                         counts.counts / np.where(sums > 0, sums, 1.0),
                         1.0 / counts.n_symbols)
        return cls(counts.n_states, counts.n_symbols, probabilities=probs)

    def distribution(self, state: int) -> np.ndarray:
        """P(symbol | state) for every symbol."""
        return self.emissionprob_[state]

    def top_symbols(self, state: int, k: int = 10) -> np.ndarray:
        """Ids of the ``k`` most probable symbols of ``state``, most probable first."""
        return np.argsort(-self.emissionprob_[state], kind='stable')[:k]

    def save(self, stream: BinaryIO):
        np.save(stream, self.emissionprob_, allow_pickle=False)

    @classmethod
    def load(cls, stream: BinaryIO) -> 'CategoricalObservations':
        probs = np.load(stream, allow_pickle=False)
        if probs.ndim != 2:
            raise ConfigurationError(f"Expected a 2-d emission matrix, got {probs.ndim} dims")
        return cls(probs.shape[0], probs.shape[1], probabilities=probs)

    def __repr__(self) -> str:
        return f"CategoricalObservations(n_states={self.n_states}, n_symbols={self.n_symbols})"
