"""
seqhmm - Hidden Markov Models fit to unlabeled sequences with
parallel Baum-Welch (EM) training.
"""

__version__ = "1.0.0"

from seqhmm.core.hmm import HiddenMarkovModel, TrainingOptions
from seqhmm.core.markov_model import DirichletPrior, MarkovModel
from seqhmm.core.model_io import load_model, save_model
from seqhmm.emissions.categorical import CategoricalObservations
from seqhmm.exceptions import (
    ConfigurationError,
    HMMError,
    ModelDivergenceError,
    SequenceError,
    ZeroProbabilityError,
)
