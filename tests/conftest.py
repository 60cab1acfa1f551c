"""
Shared pytest fixtures for seqhmm tests.
"""
import pytest
import numpy as np

from seqhmm.core.markov_model import MarkovModel
from seqhmm.emissions.categorical import CategoricalObservations


@pytest.fixture
def ab_observations():
    """
    2 states over symbols {A=0, B=1}.
    State 0: P(A)=0.8, P(B)=0.2
    State 1: P(A)=0.2, P(B)=0.8
    """
    return CategoricalObservations(2, 2, probabilities=np.array([
        [0.8, 0.2],
        [0.2, 0.8],
    ]))


@pytest.fixture
def uniform_chain():
    """Two states, uniform initial and transition distributions."""
    return MarkovModel.uniform(2)


@pytest.fixture
def sticky_chain():
    """Three states with strong self-transitions."""
    return MarkovModel(
        np.array([0.5, 0.3, 0.2]),
        np.array([
            [0.8, 0.1, 0.1],
            [0.2, 0.7, 0.1],
            [0.05, 0.15, 0.8],
        ])
    )


@pytest.fixture
def three_state_observations():
    """Three states over four symbols, each state favouring different symbols."""
    return CategoricalObservations(3, 4, probabilities=np.array([
        [0.6, 0.2, 0.1, 0.1],
        [0.1, 0.6, 0.2, 0.1],
        [0.1, 0.1, 0.2, 0.6],
    ]))


def _sample_sequences(chain, observations, n_sequences, length, seed=0):
    """Draw sequences from a known HMM."""
    rng = np.random.default_rng(seed)
    sequences = []
    for _ in range(n_sequences):
        state = rng.choice(chain.n_states, p=chain.startprob_)
        seq = []
        for _ in range(length):
            seq.append(int(rng.choice(observations.n_symbols,
                                      p=observations.distribution(state))))
            state = rng.choice(chain.n_states, p=chain.transmat_[state])
        sequences.append(seq)
    return sequences


@pytest.fixture
def sequence_sampler():
    """Callable (chain, observations, n_sequences, length, seed) -> sequences."""
    return _sample_sequences


@pytest.fixture
def training_sequences(sticky_chain, three_state_observations):
    """Twelve sequences of length 40 drawn from the sticky 3-state model."""
    return _sample_sequences(sticky_chain, three_state_observations,
                            n_sequences=12, length=40, seed=7)


@pytest.fixture
def random_model_parts():
    """Randomly initialized 3-state, 4-symbol parameters (fixed seed)."""
    rng = np.random.default_rng(123)
    observations = CategoricalObservations(3, 4, rng=rng)
    chain = MarkovModel.random(3, rng)
    return observations, chain
