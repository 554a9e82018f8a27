import numpy as np
import pytest
from sklearn.exceptions import NotFittedError

from dataset import make_synthetic
from exceptions import ConvergenceError, DatasetShapeError
from trca import TRCAClassifier, filterbank, train_trca, trca
from trca import test_trca as classify_trca

FS = 250


def sine(freq, n_samples=1000):
    return np.sin(2 * np.pi * freq * np.arange(n_samples) / FS)


def test_filterbank_passes_fundamental_in_first_band():
    x = sine(10)
    y = filterbank(x, FS, 0)
    assert y.shape == x.shape
    assert np.std(y[200:-200]) / np.std(x[200:-200]) > 0.8


def test_filterbank_rejects_below_band():
    x = sine(10)
    y = filterbank(x, FS, 2)
    assert np.std(y[200:-200]) / np.std(x[200:-200]) < 0.05


def test_filterbank_filters_along_sample_axis():
    x = np.stack([sine(10), sine(30)])[np.newaxis]  # (1 trial, 2 channels, samples)
    y = filterbank(x, FS, 2)
    assert y.shape == x.shape
    assert np.std(y[0, 0, 200:-200]) < np.std(y[0, 1, 200:-200])


@pytest.mark.parametrize("idx_fb", [-1, 10])
def test_filterbank_rejects_unknown_subband(idx_fb):
    with pytest.raises(ValueError):
        filterbank(sine(10), FS, idx_fb)


def test_trca_recovers_reproducible_source():
    rng = np.random.default_rng(0)
    source = sine(10, 500)
    mixing = np.array([1.0, 0.5, 0.0])
    X = mixing[:, np.newaxis] * source + 0.2 * rng.standard_normal((10, 3, 500))

    W = trca(X)
    assert W.shape == (3, 3)
    for trial in X:
        assert abs(np.corrcoef(W[:, 0] @ trial, source)[0, 1]) > 0.9


def test_trca_singular_covariance():
    with pytest.raises(ConvergenceError):
        trca(np.zeros((3, 2, 50)))


def test_classifier_shapes():
    eeg = make_synthetic(num_targs=3, num_chans=4, num_smpls=200, num_blocks=3)
    model = train_trca(eeg, FS, num_fbs=3)
    assert model.templates_.shape == (3, 3, 4, 200)
    assert model.filters_.shape == (3, 3, 4)
    assert model.classes_.tolist() == [0, 1, 2]
    assert model.decision_function(eeg[..., 0]).shape == (3, 3)


def test_classifier_labels_training_targets():
    eeg = make_synthetic(num_targs=4, num_chans=3, num_smpls=250, num_blocks=3, noise=0.2)
    model = train_trca(eeg, FS, num_fbs=1)
    assert classify_trca(eeg[..., 0], model, is_ensemble=True).tolist() == [0, 1, 2, 3]
    assert classify_trca(eeg[..., 0], model, is_ensemble=False).tolist() == [0, 1, 2, 3]
    assert model.is_ensemble is False


def test_classifier_accepts_single_trial():
    eeg = make_synthetic(num_targs=2, num_chans=2, num_smpls=250, num_blocks=2, noise=0.1)
    model = train_trca(eeg, FS, num_fbs=1)
    assert model.predict(eeg[1, :, :, 0]).tolist() == [1]


def test_predict_before_fit():
    with pytest.raises(NotFittedError):
        TRCAClassifier(fs=FS).predict(np.zeros((1, 2, 250)))


def test_channel_mismatch_rejected():
    eeg = make_synthetic(num_targs=2, num_chans=3, num_smpls=250, num_blocks=2)
    model = train_trca(eeg, FS, num_fbs=1)
    with pytest.raises(DatasetShapeError):
        model.predict(np.zeros((2, 2, 250)))


def test_train_requires_blocks_axis():
    with pytest.raises(DatasetShapeError):
        train_trca(np.zeros((2, 3, 250)), FS, num_fbs=1)
