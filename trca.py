"""Task-related component analysis (TRCA) for SSVEP detection.

Filter bank analysis can be combined with the TRCA-based method; each
sub-band gets its own set of spatial filters and templates and the
per-band correlations are combined with fixed weights.

References:
  M. Nakanishi, Y. Wang, X. Chen, Y.-T. Wang, X. Gao, and T.-P. Jung,
  "Enhancing detection of SSVEPs for a high-speed brain speller using
  task-related component analysis", IEEE Trans. Biomed. Eng, 65(1):104-112, 2018.

  X. Chen, Y. Wang, S. Gao, T.-P. Jung and X. Gao, "Filter bank canonical
  correlation analysis for implementing a high-speed SSVEP-based
  brain-computer interface", J. Neural Eng., 12: 046008, 2015.
"""
import logging

import numpy as np
from scipy import signal
from scipy.linalg import LinAlgError, eigh
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils.validation import check_is_fitted

from exceptions import ConvergenceError, DatasetShapeError

logger = logging.getLogger(__name__)

# Lower band edges [Hz] of each sub-band
PASSBAND = [6, 14, 22, 30, 38, 46, 54, 62, 70, 78]
STOPBAND = [4, 10, 16, 24, 32, 40, 48, 56, 64, 72]


def filterbank(eeg, fs, idx_fb, axis=-1):
    """Band-pass eeg into sub-band idx_fb (0-based) along the sample axis."""
    if not 0 <= idx_fb < len(PASSBAND):
        raise ValueError(f"idx_fb must be in [0, {len(PASSBAND) - 1}], got {idx_fb}")

    nyq = fs / 2
    # 90/100 Hz upper edges at fs=250, scaled down for lower sampling rates
    wp = [PASSBAND[idx_fb] / nyq, min(90, 0.72 * nyq) / nyq]
    ws = [STOPBAND[idx_fb] / nyq, min(100, 0.8 * nyq) / nyq]
    if wp[0] >= wp[1]:
        raise ValueError(f"Sub-band {idx_fb} is above the usable range for fs={fs} Hz")

    N, Wn = signal.cheb1ord(wp, ws, 3, 40)
    B, A = signal.cheby1(N, 0.5, Wn, btype='bandpass')
    padlen = 3 * (max(len(A), len(B)) - 1)
    return signal.filtfilt(B, A, eeg, axis=axis, padlen=padlen)


def trca(X):
    """Spatial filters maximizing inter-trial reproducibility.

    X has shape (n_trials, n_channels, n_samples). Returns W of shape
    (n_channels, n_channels), columns in descending eigenvalue order.
    """
    n_trials, n_channels, n_samples = X.shape
    S = np.zeros((n_channels, n_channels))
    for i in range(n_trials - 1):
        x1 = X[i] - X[i].mean(axis=1, keepdims=True)
        for j in range(i + 1, n_trials):
            x2 = X[j] - X[j].mean(axis=1, keepdims=True)
            S += x1 @ x2.T + x2 @ x1.T
    UX = X.transpose(1, 0, 2).reshape(n_channels, -1)
    UX = UX - UX.mean(axis=1, keepdims=True)
    Q = UX @ UX.T
    try:
        eigvals, eigvecs = eigh(S, Q)
    except LinAlgError as e:
        raise ConvergenceError(f"TRCA covariance matrix is singular: {e}") from e
    W = eigvecs[:, np.argsort(eigvals)[::-1]]
    return W


class TRCAClassifier(BaseEstimator, ClassifierMixin):
    """(Ensemble) TRCA with filter bank analysis.

    Parameters
    ----------
    fs : float
        Sampling rate [Hz].
    num_fbs : int
        Number of sub-bands in the filter bank.
    is_ensemble : bool
        If True, every class is scored with the filters of all classes
        stacked together (ensemble TRCA).
    """

    def __init__(self, fs, num_fbs=1, is_ensemble=False):
        self.fs = fs
        self.num_fbs = num_fbs
        self.is_ensemble = is_ensemble

    def fit(self, X, y):
        # X shape: (n_trials, n_channels, n_samples)
        # y shape: (n_trials,)
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)
        if X.ndim != 3:
            raise DatasetShapeError("Training data must be (trials, channels, samples)", X.shape)

        self.classes_ = np.unique(y)
        n_trials, n_channels, n_samples = X.shape
        self.templates_ = np.zeros((len(self.classes_), self.num_fbs, n_channels, n_samples))
        self.filters_ = np.zeros((self.num_fbs, len(self.classes_), n_channels))
        for fb_i in range(self.num_fbs):
            X_fb = filterbank(X, self.fs, fb_i)
            for class_i, label in enumerate(self.classes_):
                trials = X_fb[y == label]
                self.templates_[class_i, fb_i] = trials.mean(axis=0)
                self.filters_[fb_i, class_i] = trca(trials)[:, 0]  # use first component
        logger.debug("Fitted TRCA on %d trials, %d classes, %d sub-bands",
                     n_trials, len(self.classes_), self.num_fbs)
        return self

    def decision_function(self, X):
        """Weighted filter-bank correlation of each trial with each class template."""
        check_is_fitted(self, ['templates_', 'filters_'])
        X = np.asarray(X, dtype=float)
        if X.ndim == 2:
            X = X[np.newaxis]
        if X.shape[1:] != self.templates_.shape[2:]:
            raise DatasetShapeError(
                f"Test trials must be (channels, samples) = {self.templates_.shape[2:]}", X.shape)

        fb_coefs = np.arange(1, self.num_fbs + 1) ** -1.25 + 0.25
        rho = np.zeros((X.shape[0], len(self.classes_)))
        for fb_i in range(self.num_fbs):
            X_fb = filterbank(X, self.fs, fb_i)
            for class_i in range(len(self.classes_)):
                if self.is_ensemble:
                    w = self.filters_[fb_i].T
                else:
                    w = self.filters_[fb_i, class_i][:, np.newaxis]
                template = (w.T @ self.templates_[class_i, fb_i]).ravel()
                for trial_i, trial in enumerate(X_fb):
                    r = np.corrcoef((w.T @ trial).ravel(), template)[0, 1]
                    rho[trial_i, class_i] += fb_coefs[fb_i] * np.nan_to_num(r)
        return rho

    def predict(self, X):
        # X shape: (n_trials, n_channels, n_samples)
        rho = self.decision_function(X)
        return self.classes_[np.argmax(rho, axis=1)]


def train_trca(eeg, fs, num_fbs):
    """Fit TRCA on eeg of shape (targets, channels, samples, blocks).

    Target k is given label k.
    """
    eeg = np.asarray(eeg, dtype=float)
    if eeg.ndim != 4:
        raise DatasetShapeError("Training data must be (targets, channels, samples, blocks)", eeg.shape)
    num_targs, num_chans, num_smpls, num_blocks = eeg.shape
    X = eeg.transpose(3, 0, 1, 2).reshape(-1, num_chans, num_smpls)
    y = np.tile(np.arange(num_targs), num_blocks)
    return TRCAClassifier(fs=fs, num_fbs=num_fbs).fit(X, y)


def test_trca(eeg, model, is_ensemble):
    """Label each row of eeg (targets, channels, samples) with a fitted model."""
    model.set_params(is_ensemble=bool(is_ensemble))
    return model.predict(eeg)

