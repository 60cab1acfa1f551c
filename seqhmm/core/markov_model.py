"""
Markov chain parameters: initial-state distribution and transition matrix.

``MarkovModel`` instances are immutable once built. EM produces a new one
each iteration from ``MarkovCounts`` via ``MarkovModel.from_counts``.
"""

from typing import BinaryIO, Optional, Union, Sequence

import numpy as np

from seqhmm.exceptions import ConfigurationError


class DirichletPrior:
    """
    Dirichlet prior over K categories (states of a chain, or symbols).

    Used to draw random initial and transition distributions. ``alpha``
    is either a scalar (symmetric prior) or one concentration per category.
    """

    def __init__(self, alpha: Union[float, Sequence[float]] = 1.0,
                 n_states: Optional[int] = None):
        alpha = np.asarray(alpha, dtype=float)
        if alpha.ndim == 0:
            if n_states is None:
                raise ConfigurationError("A symmetric prior needs n_states")
            alpha = np.full(n_states, float(alpha))
        elif n_states is not None and alpha.shape != (n_states,):
            raise ConfigurationError(
                f"Prior has {alpha.shape[0]} concentrations, expected {n_states}"
            )
        if alpha.ndim != 1 or np.any(alpha <= 0):
            raise ConfigurationError("Dirichlet concentrations must be positive")
        self.alpha = alpha

    @classmethod
    def symmetric(cls, n_states: int, alpha: float = 1.0) -> 'DirichletPrior':
        return cls(alpha, n_states=n_states)

    @property
    def n_states(self) -> int:
        return len(self.alpha)

    def sample(self, rng: np.random.Generator, size: Optional[int] = None) -> np.ndarray:
        """Draw one distribution, or ``size`` of them stacked as rows."""
        return rng.dirichlet(self.alpha, size=size)


class MarkovCounts:
    """Expected initial-state and transition counts for one chain."""

    def __init__(self, n_states: int):
        self.initial = np.zeros(n_states)
        self.transitions = np.zeros((n_states, n_states))

    @property
    def n_states(self) -> int:
        return len(self.initial)

    def increment_initial(self, state: int, weight: float):
        self.initial[state] += weight

    def increment_transition(self, from_state: int, to_state: int, weight: float):
        self.transitions[from_state, to_state] += weight

    def __iadd__(self, other: 'MarkovCounts') -> 'MarkovCounts':
        if other.n_states != self.n_states:
            raise ValueError(
                f"Cannot merge counts for {other.n_states} states into {self.n_states}"
            )
        self.initial += other.initial
        self.transitions += other.transitions
        return self


class MarkovModel:
    """
    Initial and transition distributions over ``n_states`` hidden states.

    Attributes:
        startprob_: (K,) initial-state distribution
        transmat_: (K, K) transition matrix, transmat_[i, j] = P(j | i)
    """

    def __init__(self, startprob: np.ndarray, transmat: np.ndarray):
        startprob = np.array(startprob, dtype=float)
        transmat = np.array(transmat, dtype=float)

        if startprob.ndim != 1 or startprob.shape[0] < 1:
            raise ConfigurationError("startprob must be a non-empty vector")
        n_states = startprob.shape[0]
        if transmat.shape != (n_states, n_states):
            raise ConfigurationError(
                f"transmat shape {transmat.shape} doesn't match ({n_states}, {n_states})"
            )
        if np.any(startprob < 0) or np.any(transmat < 0):
            raise ConfigurationError("Chain probabilities must be non-negative")
        if not np.isclose(startprob.sum(), 1.0):
            raise ConfigurationError(f"startprob sums to {startprob.sum()}, expected 1.0")
        if not np.allclose(transmat.sum(axis=1), 1.0):
            raise ConfigurationError(
                f"transmat rows don't sum to 1.0: {transmat.sum(axis=1)}"
            )

        self.startprob_ = startprob
        self.transmat_ = transmat
        self.startprob_.flags.writeable = False
        self.transmat_.flags.writeable = False

    @classmethod
    def uniform(cls, n_states: int) -> 'MarkovModel':
        return cls(np.full(n_states, 1.0 / n_states),
                   np.full((n_states, n_states), 1.0 / n_states))

    @classmethod
    def random(cls, n_states: int, rng: np.random.Generator,
               prior: Optional[DirichletPrior] = None) -> 'MarkovModel':
        """Draw the initial distribution and every transition row from ``prior``."""
        if prior is None:
            prior = DirichletPrior.symmetric(n_states)
        if prior.n_states != n_states:
            raise ConfigurationError(
                f"Prior covers {prior.n_states} states, chain has {n_states}"
            )
        return cls(prior.sample(rng), prior.sample(rng, size=n_states))

    @classmethod
    def from_counts(cls, counts: MarkovCounts) -> 'MarkovModel':
        """
        Maximum-likelihood chain for the given expected counts.

        Rows with no mass (a state that was never visited) become uniform.
        """
        return cls(_normalize_rows(counts.initial[np.newaxis, :])[0],
                   _normalize_rows(counts.transitions))

    @property
    def n_states(self) -> int:
        return len(self.startprob_)

    def initial_probability(self, state: int) -> float:
        return self.startprob_[state]

    def transition_probability(self, from_state: int, to_state: int) -> float:
        return self.transmat_[from_state, to_state]

    def expected_counts(self) -> MarkovCounts:
        return MarkovCounts(self.n_states)

    def save(self, stream: BinaryIO):
        np.save(stream, self.startprob_, allow_pickle=False)
        np.save(stream, self.transmat_, allow_pickle=False)

    @classmethod
    def load(cls, stream: BinaryIO) -> 'MarkovModel':
        startprob = np.load(stream, allow_pickle=False)
        transmat = np.load(stream, allow_pickle=False)
        return cls(startprob, transmat)

    def __repr__(self) -> str:
        return f"MarkovModel(n_states={self.n_states})"


def _normalize_rows(counts: np.ndarray) -> np.ndarray:
    sums = counts.sum(axis=1, keepdims=True)
    uniform = np.full_like(counts, 1.0 / counts.shape[1])
    return np.where(sums > 0, counts / np.where(sums > 0, sums, 1.0), uniform)
