"""
Unit tests for the seqhmm HiddenMarkovModel facade.

Tests cover:
- Construction and state-count validation
- Baum-Welch training: convergence, iteration budget, monotonic likelihood
- Divergence detection
- Input validation for empty sequences
"""
import pytest
import numpy as np

from seqhmm.config import reset_config, set_config
from seqhmm.core.hmm import HiddenMarkovModel, TrainingMonitor, TrainingOptions
from seqhmm.core.markov_model import DirichletPrior, MarkovModel
from seqhmm.emissions.categorical import CategoricalObservations
from seqhmm.exceptions import ConfigurationError, ModelDivergenceError, SequenceError


class ForgetfulObservations(CategoricalObservations):
    """Re-estimates to uniform no matter what it saw."""

    @classmethod
    def from_counts(cls, counts):
        return cls(counts.n_states, counts.n_symbols)


@pytest.fixture
def config_cleanup():
    yield
    reset_config()


@pytest.fixture
def random_model(random_model_parts):
    observations, chain = random_model_parts
    return HiddenMarkovModel.from_parameters(observations, chain)


class TestTrainingOptions:
    def test_defaults(self):
        options = TrainingOptions()
        assert options.delta == 1e-5
        assert options.max_iters is None

    def test_negative_delta(self):
        with pytest.raises(ValueError):
            TrainingOptions(delta=-1.0)

    def test_zero_iterations(self):
        with pytest.raises(ValueError):
            TrainingOptions(max_iters=0)

    def test_from_config(self, config_cleanup):
        set_config('training', 'delta', 0.5)
        set_config('training', 'max_iters', 7)
        options = TrainingOptions.from_config()
        assert options.delta == 0.5
        assert options.max_iters == 7


class TestInitialization:
    def test_uniform_chain_without_rng(self, ab_observations):
        model = HiddenMarkovModel(2, ab_observations)
        assert model.n_states == 2
        assert model.init_prob(0) == pytest.approx(0.5)
        assert model.trans_prob(1, 0) == pytest.approx(0.5)

    def test_random_chain_with_rng(self, three_state_observations):
        model = HiddenMarkovModel(3, three_state_observations,
                                  rng=np.random.default_rng(0))
        assert model.chain.startprob_.sum() == pytest.approx(1.0)
        assert not np.allclose(model.chain.transmat_, 1 / 3)

    def test_random_chain_with_prior(self, three_state_observations):
        prior = DirichletPrior([50.0, 1.0, 1.0])
        model = HiddenMarkovModel(3, three_state_observations, prior=prior,
                                  rng=np.random.default_rng(0))
        assert np.all(model.chain.transmat_[:, 0] > 0.7)

    def test_prior_without_rng(self, three_state_observations):
        with pytest.raises(ConfigurationError):
            HiddenMarkovModel(3, three_state_observations,
                              prior=DirichletPrior.symmetric(3))

    def test_state_count_mismatch(self, ab_observations):
        with pytest.raises(ConfigurationError):
            HiddenMarkovModel(3, ab_observations)

    def test_from_parameters_mismatch(self, ab_observations, sticky_chain):
        with pytest.raises(ConfigurationError):
            HiddenMarkovModel.from_parameters(ab_observations, sticky_chain)

    def test_accessors(self, three_state_observations, sticky_chain):
        model = HiddenMarkovModel.from_parameters(three_state_observations, sticky_chain)

        assert model.chain is sticky_chain
        assert model.observations is three_state_observations
        assert model.observation_distribution() is three_state_observations
        np.testing.assert_allclose(model.observation_distribution(1),
                                   [0.1, 0.6, 0.2, 0.1])
        assert model.init_prob(2) == pytest.approx(0.2)
        assert model.trans_prob(0, 0) == pytest.approx(0.8)
        assert model.monitor_ is None


class TestFit:
    def test_converges(self, random_model, training_sequences):
        ll = random_model.fit(training_sequences,
                              TrainingOptions(delta=1e-4, max_iters=1000))

        monitor = random_model.monitor_
        assert monitor.converged
        assert np.isfinite(ll)
        assert ll == monitor.history[-1]
        assert monitor.n_iter < 1000

    def test_likelihood_never_decreases(self, random_model, training_sequences):
        random_model.fit(training_sequences, TrainingOptions(delta=0.0, max_iters=25))

        history = np.array(random_model.monitor_.history)
        assert np.all(np.diff(history) >= -1e-9)

    def test_iteration_budget(self, random_model, training_sequences):
        ll = random_model.fit(training_sequences, TrainingOptions(delta=0.0, max_iters=3))

        monitor = random_model.monitor_
        assert monitor.n_iter == 3
        assert not monitor.converged
        assert ll == monitor.history[-1]

    def test_parameters_replaced(self, random_model, training_sequences):
        old_chain = random_model.chain
        old_observations = random_model.observations

        random_model.fit(training_sequences, TrainingOptions(max_iters=1))

        assert random_model.chain is not old_chain
        assert random_model.observations is not old_observations
        assert isinstance(random_model.observations, CategoricalObservations)
        np.testing.assert_allclose(random_model.chain.transmat_.sum(axis=1), 1.0)

    def test_first_likelihood_uses_initial_parameters(self, random_model,
                                                      training_sequences):
        initial_ll = random_model.log_likelihood(training_sequences)
        random_model.fit(training_sequences, TrainingOptions(max_iters=1))
        assert random_model.monitor_.history[0] == pytest.approx(initial_ll)

    def test_fitted_likelihood_at_least_last_reported(self, random_model,
                                                      training_sequences):
        ll = random_model.fit(training_sequences, TrainingOptions(delta=0.0, max_iters=5))
        assert random_model.log_likelihood(training_sequences) >= ll - 1e-9

    def test_refit(self, random_model, training_sequences):
        first = random_model.fit(training_sequences, TrainingOptions(delta=0.0, max_iters=5))
        second = random_model.fit(training_sequences, TrainingOptions(delta=0.0, max_iters=5))
        assert random_model.monitor_.n_iter == 5
        assert second >= first - 1e-9

    def test_recovers_sticky_structure(self, sequence_sampler,
                                       sticky_chain, three_state_observations):
        sequences = sequence_sampler(sticky_chain, three_state_observations,
                                     n_sequences=40, length=100, seed=11)
        rng = np.random.default_rng(2)
        model = HiddenMarkovModel(3, CategoricalObservations(3, 4, rng=rng), rng=rng)
        model.fit(sequences, TrainingOptions(delta=1e-3, max_iters=300))

        true_ll = HiddenMarkovModel.from_parameters(
            three_state_observations, sticky_chain).log_likelihood(sequences)
        # a fitted model should do about as well as the generating one
        assert model.log_likelihood(sequences) > true_ll - 0.03 * abs(true_ll)

    def test_options_from_config(self, random_model, training_sequences, config_cleanup):
        set_config('training', 'delta', 0.0)
        set_config('training', 'max_iters', 2)
        random_model.fit(training_sequences)
        assert random_model.monitor_.n_iter == 2

    def test_single_state(self, training_sequences):
        model = HiddenMarkovModel(1, CategoricalObservations(1, 4))
        ll = model.fit(training_sequences, TrainingOptions(delta=1e-8, max_iters=10))

        # one state: the chain is fixed and emissions are symbol frequencies
        freqs = np.bincount(np.concatenate(training_sequences), minlength=4)
        freqs = freqs / freqs.sum()
        np.testing.assert_allclose(model.observations.emissionprob_[0], freqs)
        assert model.monitor_.converged
        assert ll == pytest.approx(np.sum(np.bincount(np.concatenate(training_sequences),
                                                      minlength=4) * np.log(freqs)))


class TestDivergence:
    def test_raises_when_likelihood_drops(self):
        observations = ForgetfulObservations(2, 2, probabilities=np.array([
            [0.9, 0.1],
            [0.9, 0.1],
        ]))
        model = HiddenMarkovModel(2, observations)
        sequences = [[0, 0, 0, 0]] * 5

        with pytest.raises(ModelDivergenceError) as excinfo:
            model.fit(sequences, TrainingOptions(delta=1e-6, max_iters=10))

        err = excinfo.value
        assert err.iteration == 2
        assert err.previous == pytest.approx(20 * np.log(0.9))
        assert err.current == pytest.approx(20 * np.log(0.5))
        assert err.history == model.monitor_.history
        assert len(err.history) == 2

    def test_decrease_smaller_than_delta_still_raises(self):
        observations = ForgetfulObservations(2, 2, probabilities=np.array([
            [0.9, 0.1],
            [0.9, 0.1],
        ]))
        model = HiddenMarkovModel(2, observations)

        # the drop (about 11.8) is well inside delta
        with pytest.raises(ModelDivergenceError) as excinfo:
            model.fit([[0, 0, 0, 0]] * 5, TrainingOptions(delta=100.0, max_iters=10))

        assert excinfo.value.iteration == 2
        assert not model.monitor_.converged

    def test_equal_likelihood_counts_as_converged(self):
        # uniform everything is already a fixed point
        model = HiddenMarkovModel(2, CategoricalObservations(2, 3))
        model.fit([[0, 1, 2]], TrainingOptions(delta=1e-6, max_iters=10))
        assert model.monitor_.converged
        assert model.monitor_.n_iter == 2


class TestInputValidation:
    def test_no_sequences(self, random_model):
        with pytest.raises(SequenceError):
            random_model.fit([])

    def test_empty_sequence(self, random_model):
        with pytest.raises(SequenceError):
            random_model.fit([[0, 1], []])

    def test_sequence_error_is_value_error(self, random_model):
        with pytest.raises(ValueError):
            random_model.log_likelihood([[]])

    def test_failed_validation_keeps_parameters(self, random_model):
        chain = random_model.chain
        with pytest.raises(SequenceError):
            random_model.fit([[]])
        assert random_model.chain is chain


class TestTrainingMonitor:
    def test_empty(self):
        monitor = TrainingMonitor()
        assert monitor.n_iter == 0
        assert not monitor.converged
