"""
Trellis storage for the forward-backward algorithm.

A trellis is a (time x state) table. The forward trellis renormalizes each
column to sum to one and remembers the normalizer it used, which is what
keeps long sequences from underflowing. The backward trellis has no
normalizers of its own; the backward recursion borrows the forward ones.
"""

import numpy as np

from seqhmm.exceptions import ZeroProbabilityError


class Trellis:
    """
    Dense (T x K) table of probabilities.

    Cells are read and written with ``trellis[t, s]``; whole columns with
    ``column(t)`` / ``set_column(t, values)``.
    """

    def __init__(self, n_steps: int, n_states: int):
        if n_steps < 1 or n_states < 1:
            raise ValueError(
                f"Trellis needs at least one time step and one state, "
                f"got ({n_steps}, {n_states})"
            )
        self._table = np.zeros((n_steps, n_states))

    def __len__(self) -> int:
        return self._table.shape[0]

    @property
    def n_states(self) -> int:
        return self._table.shape[1]

    def __getitem__(self, index) -> float:
        t, s = index
        return self._table[t, s]

    def __setitem__(self, index, value: float):
        t, s = index
        self._check_writable(t)
        self._table[t, s] = value

    def probability(self, t: int, s: int) -> float:
        return self._table[t, s]

    def column(self, t: int) -> np.ndarray:
        """Read-only view of column ``t``."""
        view = self._table[t]
        view.flags.writeable = False
        return view

    def set_column(self, t: int, values: np.ndarray):
        self._check_writable(t)
        self._table[t, :] = values

    @property
    def probabilities(self) -> np.ndarray:
        """Read-only view of the whole (T x K) table."""
        view = self._table.view()
        view.flags.writeable = False
        return view

    def _check_writable(self, t: int):
        pass


class ForwardTrellis(Trellis):
    """
    Trellis whose columns are normalized in place.

    ``normalize(t)`` divides column ``t`` by its sum and records the
    normalizer ``1 / sum``. The product of all normalizers is
    ``1 / P(sequence)``, so ``-sum(log(normalizers))`` is the sequence
    log likelihood.
    """

    def __init__(self, n_steps: int, n_states: int):
        super().__init__(n_steps, n_states)
        self._normalizers = np.zeros(n_steps)
        self._normalized = np.zeros(n_steps, dtype=bool)

    def normalize(self, t: int):
        """Normalize column ``t``; must be called once, after it is filled."""
        if self._normalized[t]:
            raise ValueError(f"Column {t} has already been normalized")

        total = self._table[t].sum()
        if not total > 0:
            raise ZeroProbabilityError(
                f"Column {t} has zero total probability; the observation at "
                f"this step is impossible under every state"
            )

        self._normalizers[t] = 1.0 / total
        self._table[t] *= self._normalizers[t]
        self._normalized[t] = True

    def normalizer(self, t: int) -> float:
        """Scale factor recorded for column ``t`` (the reciprocal of its raw sum)."""
        return self._normalizers[t]

    def column_sum(self, t: int) -> float:
        """Raw (pre-normalization) sum of column ``t``."""
        return 1.0 / self._normalizers[t]

    @property
    def normalizers(self) -> np.ndarray:
        view = self._normalizers.view()
        view.flags.writeable = False
        return view

    def log_likelihood(self) -> float:
        """log P(sequence) = sum_t -log(normalizer_t)."""
        return float(-np.log(self._normalizers).sum())

    def _check_writable(self, t: int):
        if self._normalized[t]:
            raise ValueError(f"Column {t} was normalized and can no longer be written")
