"""
seqhmm HMM module

Provides:
1. HiddenMarkovModel, a generic HMM over any observation model that
   implements the ``ObservationModel`` protocol
2. Baum-Welch training with a parallel E-step and a strict
   convergence / divergence policy

Model I/O helpers for files live in seqhmm.core.model_io.
"""

import itertools
import time
from typing import Any, BinaryIO, List, Optional, Sequence, Type

import numpy as np

from seqhmm.config import get_config
from seqhmm.core.forward_backward import forward, output_probabilities
from seqhmm.core.markov_model import DirichletPrior, MarkovModel
from seqhmm.core.observations import ObservationModel
from seqhmm.exceptions import ConfigurationError, ModelDivergenceError, SequenceError
from seqhmm.logger import get_logger
from seqhmm.training.em import expectation_maximization
from seqhmm.training.parallel import ProgressCounter, resolve_workers

logger = get_logger(__name__)


class TrainingOptions:
    """
    Stopping rules for ``HiddenMarkovModel.fit``.

    Attributes:
        delta: Stop once logL_i - logL_{i-1} < delta
        max_iters: Stop after this many iterations (None = no limit)
    """

    def __init__(self, delta: float = 1e-5, max_iters: Optional[int] = None):
        if delta < 0:
            raise ValueError(f"delta must be non-negative, got {delta}")
        if max_iters is not None and max_iters < 1:
            raise ValueError(f"max_iters must be at least 1, got {max_iters}")
        self.delta = delta
        self.max_iters = max_iters

    @classmethod
    def from_config(cls) -> 'TrainingOptions':
        return cls(delta=get_config('training', 'delta'),
                   max_iters=get_config('training', 'max_iters'))

    def __repr__(self) -> str:
        return f"TrainingOptions(delta={self.delta}, max_iters={self.max_iters})"


class TrainingMonitor:
    """Tracks training progress."""
    def __init__(self):
        self.history: List[float] = []
        self.converged = False

    @property
    def n_iter(self) -> int:
        return len(self.history)


class HiddenMarkovModel:
    """
    Hidden Markov Model for unsupervised sequence labeling.

    Owns one observation model and one Markov chain, both over the same
    ``n_states`` hidden states. Training replaces both wholesale after
    every iteration; they are never modified in place.

    Args:
        n_states: Number of hidden states
        observations: Observation model; must report ``n_states`` states.
            With uniform initialization (no ``rng``) it is the only thing
            that tells the states apart, so initialize it randomly.
        prior: Dirichlet prior used to draw the random chain; requires ``rng``
        rng: numpy Generator; if given the chain is drawn from ``prior``,
            otherwise initial and transition distributions are uniform
    """

    def __init__(self, n_states: int, observations: ObservationModel,
                 prior: Optional[DirichletPrior] = None,
                 rng: Optional[np.random.Generator] = None):
        if observations.n_states != n_states:
            raise ConfigurationError(
                "The observation distribution and HMM have differing numbers "
                f"of hidden states ({observations.n_states} != {n_states})"
            )

        if prior is not None and rng is None:
            raise ConfigurationError("A Dirichlet prior needs an rng to draw the chain from")

        if rng is not None:
            if prior is None:
                alpha = get_config('initialization', 'prior_concentration')
                prior = DirichletPrior.symmetric(n_states, alpha)
            chain = MarkovModel.random(n_states, rng, prior)
        else:
            chain = MarkovModel.uniform(n_states)

        self._observations = observations
        self._chain = chain
        self.monitor_: Optional[TrainingMonitor] = None

    @classmethod
    def from_parameters(cls, observations: ObservationModel,
                        chain: MarkovModel) -> 'HiddenMarkovModel':
        """Wrap an existing observation model and chain."""
        if observations.n_states != chain.n_states:
            raise ConfigurationError(
                "The observation distribution and HMM have differing numbers "
                f"of hidden states ({observations.n_states} != {chain.n_states})"
            )
        model = cls.__new__(cls)
        model._observations = observations
        model._chain = chain
        model.monitor_ = None
        return model

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def n_states(self) -> int:
        return self._chain.n_states

    @property
    def chain(self) -> MarkovModel:
        return self._chain

    @property
    def observations(self) -> ObservationModel:
        return self._observations

    def init_prob(self, state: int) -> float:
        return self._chain.initial_probability(state)

    def trans_prob(self, from_state: int, to_state: int) -> float:
        return self._chain.transition_probability(from_state, to_state)

    def observation_distribution(self, state: Optional[int] = None) -> Any:
        """The observation model, or the distribution of one state."""
        if state is None:
            return self._observations
        return self._observations.distribution(state)

    # =========================================================================
    # Training
    # =========================================================================

    def fit(self, sequences: Sequence[Sequence[Any]],
            options: Optional[TrainingOptions] = None,
            n_workers: Optional[int] = None,
            show_progress: Optional[bool] = None) -> float:
        """
        Train with Baum-Welch until converged or out of iterations.

        After each iteration, in order:
          - logL < previous logL: raise ModelDivergenceError
          - logL - previous logL < delta: converged, return logL
          - iteration budget used up: return logL

        Args:
            sequences: Training sequences; none may be empty
            options: Stopping rules (default: from config)
            n_workers: Worker threads for the E-step (default: from config,
                0 = all cores)
            show_progress: Show a per-iteration progress bar

        Returns:
            Log likelihood of the training data from the last iteration

        Raises:
            SequenceError: No sequences, or an empty sequence
            ModelDivergenceError: Log likelihood decreased
        """
        _check_sequences(sequences)

        if options is None:
            options = TrainingOptions.from_config()
        if n_workers is None:
            n_workers = get_config('training', 'n_workers')
        n_workers = resolve_workers(n_workers)
        if show_progress is None:
            show_progress = bool(get_config('training', 'show_progress'))

        self.monitor_ = monitor = TrainingMonitor()
        old_ll = -np.inf

        if options.max_iters is None:
            iterations = itertools.count(1)
        else:
            iterations = range(1, options.max_iters + 1)

        for iteration in iterations:
            start = time.perf_counter()
            with ProgressCounter(len(sequences), desc=f"> Iteration {iteration}",
                                 show=show_progress) as progress:
                observations, chain, ll = expectation_maximization(
                    sequences, self._observations, self._chain,
                    n_workers=n_workers, progress=progress
                )
            self._observations, self._chain = observations, chain
            monitor.history.append(ll)

            logger.info(f"Iteration {iteration}: took {time.perf_counter() - start:.3f}s, "
                        f"log likelihood {ll:.6f}")

            if ll < old_ll:
                logger.critical("Log likelihood did not improve!")
                raise ModelDivergenceError(iteration, old_ll, ll, monitor.history)

            if ll - old_ll < options.delta:
                logger.info(f"Converged! ({ll - old_ll:.3e} < {options.delta})")
                monitor.converged = True
                return ll

            old_ll = ll

        logger.info(f"Stopped after {monitor.n_iter} iterations without converging")
        return old_ll

    def log_likelihood(self, sequences: Sequence[Sequence[Any]]) -> float:
        """Total log likelihood of ``sequences`` under the current parameters."""
        _check_sequences(sequences)
        return sum(
            forward(output_probabilities(seq, self._observations), self._chain).log_likelihood()
            for seq in sequences
        )

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self, stream: BinaryIO):
        """Write observation model bytes, then chain bytes."""
        self._observations.save(stream)
        self._chain.save(stream)

    @classmethod
    def load(cls, stream: BinaryIO,
             observation_cls: Type[ObservationModel]) -> 'HiddenMarkovModel':
        """Read a model written by ``save``."""
        observations = observation_cls.load(stream)
        chain = MarkovModel.load(stream)
        return cls.from_parameters(observations, chain)

    def __repr__(self) -> str:
        return (f"HiddenMarkovModel(n_states={self.n_states}, "
                f"observations={type(self._observations).__name__})")


def _check_sequences(sequences: Sequence[Sequence[Any]]):
    if len(sequences) == 0:
        raise SequenceError("No training sequences given")
    for i, seq in enumerate(sequences):
        if len(seq) == 0:
            raise SequenceError(f"Sequence {i} is empty")
