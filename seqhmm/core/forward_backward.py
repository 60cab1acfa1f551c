"""
Scaled forward-backward algorithm for a single sequence.

All functions take the (T x K) output-probability cache
``b[t, s] = P(o_t | s)`` instead of the observation model itself, so
the (possibly expensive) emission model is evaluated once per sequence
per iteration.
"""

from typing import Any, Sequence

import numpy as np

from seqhmm.core.markov_model import MarkovModel
from seqhmm.core.observations import ObservationModel
from seqhmm.core.trellis import ForwardTrellis, Trellis
from seqhmm.exceptions import SequenceError


def output_probabilities(sequence: Sequence[Any],
                         observations: ObservationModel) -> np.ndarray:
    """
    Cache P(o_t | s) for every time step and state.

    Uses the model's own ``output_probabilities(sequence)`` when it has
    one, otherwise calls ``probability`` cell by cell.

    Returns:
        (T, K) array
    """
    if len(sequence) == 0:
        raise SequenceError("Cannot compute output probabilities for an empty sequence")

    batch = getattr(observations, 'output_probabilities', None)
    if batch is not None:
        return np.asarray(batch(sequence), dtype=float)

    n_states = observations.n_states
    output_probs = np.empty((len(sequence), n_states))
    for t, obs in enumerate(sequence):
        for s in range(n_states):
            output_probs[t, s] = observations.probability(obs, s)
    return output_probs


def forward(output_probs: np.ndarray, chain: MarkovModel) -> ForwardTrellis:
    """
    Forward pass, left to right, normalizing every column.

    f(0, s) = pi(s) * b(0, s)
    f(t, s) = b(t, s) * sum_j f(t-1, j) * a(j, s)
    """
    n_steps, n_states = output_probs.shape
    fwd = ForwardTrellis(n_steps, n_states)

    fwd.set_column(0, chain.startprob_ * output_probs[0])
    fwd.normalize(0)

    for t in range(1, n_steps):
        fwd.set_column(t, output_probs[t] * (fwd.column(t - 1) @ chain.transmat_))
        fwd.normalize(t)

    return fwd


def backward(output_probs: np.ndarray, fwd: ForwardTrellis,
             chain: MarkovModel) -> Trellis:
    """
    Backward pass, right to left, scaled by the forward normalizers.

    g(T-1, s) = 1
    g(t, s) = c(t+1) * sum_j g(t+1, j) * a(s, j) * b(t+1, j)
    """
    n_steps, n_states = output_probs.shape
    bwd = Trellis(n_steps, n_states)

    bwd.set_column(n_steps - 1, np.ones(n_states))

    for t in range(n_steps - 2, -1, -1):
        weighted = bwd.column(t + 1) * output_probs[t + 1]
        bwd.set_column(t, fwd.normalizer(t + 1) * (chain.transmat_ @ weighted))

    return bwd


def posterior_state_membership(fwd: ForwardTrellis, bwd: Trellis) -> np.ndarray:
    """
    gamma(t, s) = P(state s at time t | sequence).

    The product f * g is renormalized per time step so every row is a
    proper distribution even with accumulated rounding.

    Returns:
        (T, K) array whose rows sum to 1
    """
    gamma = fwd.probabilities * bwd.probabilities
    gamma /= gamma.sum(axis=1, keepdims=True)
    return gamma
