"""Core HMM algorithms, parameter stores and model I/O."""

from seqhmm.core.expectation import ExpectedCounts
from seqhmm.core.forward_backward import (
    backward,
    forward,
    output_probabilities,
    posterior_state_membership,
)
from seqhmm.core.hmm import HiddenMarkovModel, TrainingMonitor, TrainingOptions
from seqhmm.core.markov_model import DirichletPrior, MarkovCounts, MarkovModel
from seqhmm.core.model_io import load_model, save_model
from seqhmm.core.observations import ObservationCounts, ObservationModel
from seqhmm.core.trellis import ForwardTrellis, Trellis
