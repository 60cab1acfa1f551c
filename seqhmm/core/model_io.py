"""
seqhmm model I/O module

File helpers around ``HiddenMarkovModel.save`` / ``HiddenMarkovModel.load``.
A model file is the observation model's bytes followed by the chain's
bytes, both written as consecutive ``.npy`` blocks; the file carries no
other framing, so the observation model class must be known on load.
"""

import os
import warnings
from typing import Type

from seqhmm.core.hmm import HiddenMarkovModel
from seqhmm.core.observations import ObservationModel

MODEL_EXTENSION = '.hmm'


def save_model(model: HiddenMarkovModel, filepath: str) -> str:
    """
    Save model to file.

    If the filepath does not end in ``.hmm`` the extension is replaced
    and a warning is issued.

    Returns:
        The path actually written
    """
    if not filepath.endswith(MODEL_EXTENSION):
        old_path = filepath
        base, _ = os.path.splitext(filepath)
        filepath = base + MODEL_EXTENSION
        warnings.warn(
            f"Models are saved with the {MODEL_EXTENSION} extension. "
            f"Saving to '{filepath}' instead of '{old_path}'."
        )

    with open(filepath, 'wb') as f:
        model.save(f)
    return filepath


def load_model(filepath: str,
               observation_cls: Type[ObservationModel]) -> HiddenMarkovModel:
    """Load a model saved by ``save_model``."""
    with open(filepath, 'rb') as f:
        return HiddenMarkovModel.load(f, observation_cls)
