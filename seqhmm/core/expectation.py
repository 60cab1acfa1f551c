"""
Expected (soft) counts gathered during the E-step.

``ExpectedCounts`` is a commutative monoid: ``ExpectedCounts.identity``
gives the zero element for the current parameter shapes and ``+=``
merges two accumulators. That is what lets the EM driver hand one
accumulator to each worker and fold them together in any order.
"""

from typing import Any, Sequence

import numpy as np

from seqhmm.core.forward_backward import (
    backward,
    forward,
    output_probabilities,
    posterior_state_membership,
)
from seqhmm.core.markov_model import MarkovCounts, MarkovModel
from seqhmm.core.observations import ObservationCounts, ObservationModel
from seqhmm.core.trellis import ForwardTrellis, Trellis


class ExpectedCounts:
    """
    Observation counts, chain counts and the running data log likelihood.
    """

    def __init__(self, obs_counts: ObservationCounts, chain_counts: MarkovCounts,
                 log_likelihood: float = 0.0):
        self.obs_counts = obs_counts
        self.chain_counts = chain_counts
        self.log_likelihood = log_likelihood

    @classmethod
    def identity(cls, observations: ObservationModel,
                 chain: MarkovModel) -> 'ExpectedCounts':
        """All-zero counts shaped for the given parameters."""
        return cls(observations.expected_counts(), chain.expected_counts())

    def __iadd__(self, other: 'ExpectedCounts') -> 'ExpectedCounts':
        self.obs_counts += other.obs_counts
        self.chain_counts += other.chain_counts
        self.log_likelihood += other.log_likelihood
        return self


def combine(result: ExpectedCounts, other: ExpectedCounts) -> ExpectedCounts:
    """Pairwise merge used by the parallel reduction."""
    result += other
    return result


def expected_transitions(gamma: np.ndarray, fwd: ForwardTrellis, bwd: Trellis,
                         output_probs: np.ndarray, chain: MarkovModel) -> np.ndarray:
    """
    Sum over t of xi(t, i, j), the posterior of an i -> j transition at t.

    xi(t, i, j) = gamma(t, i) * a(i, j) * b(t+1, j) * c(t+1) * g(t+1, j) / g(t, i)

    Returns:
        (K, K) array of expected transition counts
    """
    n_steps, n_states = output_probs.shape
    totals = np.zeros((n_states, n_states))
    bwd_probs = bwd.probabilities

    for t in range(n_steps - 1):
        source = np.divide(gamma[t], bwd_probs[t],
                           out=np.zeros(n_states), where=bwd_probs[t] > 0)
        target = output_probs[t + 1] * fwd.normalizer(t + 1) * bwd_probs[t + 1]
        totals += source[:, np.newaxis] * chain.transmat_ * target[np.newaxis, :]

    return totals


def accumulate_sequence(counts: ExpectedCounts, sequence: Sequence[Any],
                        observations: ObservationModel, chain: MarkovModel):
    """
    Run forward-backward on one sequence and add its expected counts.

    Adds the initial-state posterior, the transition posteriors, the
    per-time-step state posteriors (weighted against each observation)
    and the sequence log likelihood to ``counts``.
    """
    output_probs = output_probabilities(sequence, observations)

    fwd = forward(output_probs, chain)
    bwd = backward(output_probs, fwd, chain)
    gamma = posterior_state_membership(fwd, bwd)

    chain_counts = counts.chain_counts
    for s in range(chain.n_states):
        chain_counts.increment_initial(s, gamma[0, s])

    xi = expected_transitions(gamma, fwd, bwd, output_probs, chain)
    for i in range(chain.n_states):
        for j in range(chain.n_states):
            chain_counts.increment_transition(i, j, xi[i, j])

    obs_counts = counts.obs_counts
    increment_sequence = getattr(obs_counts, 'increment_sequence', None)
    if increment_sequence is not None:
        increment_sequence(sequence, gamma)
    else:
        for t, obs in enumerate(sequence):
            for s in range(chain.n_states):
                obs_counts.increment(obs, s, gamma[t, s])

    counts.log_likelihood += fwd.log_likelihood()
