"""
Package consistency tests.

Verify that the public names are importable from the package root and
from their submodules, and refer to the same objects.
"""
import pytest


class TestPackageImports:
    """Verify all expected symbols are importable from package."""

    def test_top_level_imports(self):
        import seqhmm
        for name in ['HiddenMarkovModel', 'TrainingOptions', 'MarkovModel',
                     'DirichletPrior', 'CategoricalObservations',
                     'load_model', 'save_model', 'HMMError',
                     'ConfigurationError', 'SequenceError',
                     'ZeroProbabilityError', 'ModelDivergenceError']:
            assert hasattr(seqhmm, name), name

    def test_core_imports(self):
        from seqhmm.core import (
            ExpectedCounts,
            ForwardTrellis,
            HiddenMarkovModel,
            ObservationModel,
            Trellis,
            backward,
            forward,
        )
        assert callable(forward)
        assert callable(backward)
        assert ExpectedCounts is not None
        assert ForwardTrellis is not None
        assert HiddenMarkovModel is not None
        assert ObservationModel is not None
        assert Trellis is not None

    def test_training_imports(self):
        from seqhmm.training import expectation_maximization, reduction
        assert callable(expectation_maximization)
        assert callable(reduction)

    def test_emissions_imports(self):
        from seqhmm.emissions import CategoricalCounts, CategoricalObservations
        assert CategoricalCounts is not None
        assert CategoricalObservations is not None

    def test_cli_entry_point(self):
        from seqhmm.cli.train import main
        assert callable(main)


class TestSameObjects:
    def test_model_class(self):
        import seqhmm
        from seqhmm.core.hmm import HiddenMarkovModel
        assert seqhmm.HiddenMarkovModel is HiddenMarkovModel

    def test_exceptions(self):
        import seqhmm
        from seqhmm import exceptions
        assert seqhmm.SequenceError is exceptions.SequenceError
        assert issubclass(seqhmm.SequenceError, seqhmm.HMMError)
        assert issubclass(seqhmm.SequenceError, ValueError)
        assert issubclass(seqhmm.ModelDivergenceError, seqhmm.HMMError)


class TestLogger:
    def test_namespace(self):
        from seqhmm.logger import get_logger
        assert get_logger('core.hmm').name == 'seqhmm.core.hmm'
        assert get_logger('seqhmm.training').name == 'seqhmm.training'

    def test_set_level(self):
        import logging
        from seqhmm.logger import set_log_level
        set_log_level('debug')
        assert logging.getLogger('seqhmm').level == logging.DEBUG
        set_log_level('INFO')
