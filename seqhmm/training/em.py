"""
One Baum-Welch iteration over a training set.

E-step: every sequence goes through forward-backward on some worker and
its soft counts land in that worker's private ``ExpectedCounts``. The
worker accumulators are merged, then the M-step rebuilds the observation
model and chain from the merged counts.
"""

from typing import Any, Optional, Sequence, Tuple

from seqhmm.core.expectation import ExpectedCounts, accumulate_sequence, combine
from seqhmm.core.markov_model import MarkovModel
from seqhmm.core.observations import ObservationModel
from seqhmm.training.parallel import ProgressCounter, reduction


def expectation_step(sequences: Sequence[Sequence[Any]],
                     observations: ObservationModel,
                     chain: MarkovModel,
                     n_workers: int = 1,
                     progress: Optional[ProgressCounter] = None) -> ExpectedCounts:
    """Expected counts for ``sequences`` under the given parameters."""

    def zero() -> ExpectedCounts:
        return ExpectedCounts.identity(observations, chain)

    def process(counts: ExpectedCounts, sequence: Sequence[Any]):
        accumulate_sequence(counts, sequence, observations, chain)
        if progress is not None:
            progress.increment()

    return reduction(sequences, zero, process, combine, n_workers=n_workers)


def maximization_step(counts: ExpectedCounts,
                      observations: ObservationModel) -> Tuple[ObservationModel, MarkovModel]:
    """New parameters from merged counts. Nothing is modified in place."""
    new_observations = type(observations).from_counts(counts.obs_counts)
    new_chain = MarkovModel.from_counts(counts.chain_counts)
    return new_observations, new_chain


def expectation_maximization(sequences: Sequence[Sequence[Any]],
                             observations: ObservationModel,
                             chain: MarkovModel,
                             n_workers: int = 1,
                             progress: Optional[ProgressCounter] = None
                             ) -> Tuple[ObservationModel, MarkovModel, float]:
    """
    Run one EM iteration.

    Returns:
        (new_observations, new_chain, log_likelihood) where the log
        likelihood is that of ``sequences`` under the *input* parameters
    """
    counts = expectation_step(sequences, observations, chain,
                              n_workers=n_workers, progress=progress)
    new_observations, new_chain = maximization_step(counts, observations)
    return new_observations, new_chain, counts.log_likelihood
