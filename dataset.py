"""Loading SSVEP epochs into a (targets, channels, samples, blocks) array."""
import logging

import numpy as np
import scipy.io
from mne import Epochs, find_events
from mne.io import read_raw_edf

from exceptions import DatasetShapeError

logger = logging.getLogger(__name__)


def load_data(path, varname='eeg'):
    """Read the 4-D EEG array stored as `varname` in a MATLAB file."""
    mat = scipy.io.loadmat(path)
    if varname not in mat:
        raise DatasetShapeError(f"{path} has no variable named '{varname}'")
    eeg = np.asarray(mat[varname], dtype=float)
    if eeg.ndim != 4:
        raise DatasetShapeError("EEG must be (targets, channels, samples, blocks)", eeg.shape)
    logger.info("Loaded %s: %d targets, %d channels, %d samples, %d blocks", path, *eeg.shape)
    return eeg


def analysis_window(len_delay_smpl, len_gaze_smpl):
    # Samples after the visual latency, gaze length long
    return slice(len_delay_smpl, len_delay_smpl + len_gaze_smpl)


def crop(eeg, window):
    """Trim the sample axis of eeg to window."""
    if eeg.ndim != 4:
        raise DatasetShapeError("EEG must be (targets, channels, samples, blocks)", eeg.shape)
    num_smpls = eeg.shape[2]
    if window.start < 0 or window.stop > num_smpls or window.start >= window.stop:
        raise DatasetShapeError(
            f"Analysis window [{window.start}, {window.stop}) does not fit in {num_smpls} samples",
            eeg.shape)
    return eeg[:, :, window, :]


def from_epochs(epochs, event_id=None):
    """Stack MNE epochs into (targets, channels, samples, blocks).

    Targets follow the order of event_id, blocks the recording order of
    each target's repetitions.
    """
    event_id = event_id or epochs.event_id
    X = epochs.get_data()  # (n_epochs, n_channels, n_samples)
    codes = epochs.events[:, 2]
    per_target = [X[codes == code] for code in event_id.values()]
    counts = {name: len(trials) for name, trials in zip(event_id, per_target)}
    if len(set(counts.values())) != 1 or 0 in counts.values():
        raise DatasetShapeError(f"Every target needs the same number of blocks, got {counts}")
    return np.stack(per_target).transpose(0, 2, 3, 1)


def epochs_from_raw(raw, event_id, tmax, tmin=0.0, stim_channel='stim', picks='eeg'):
    """Epoch a continuous recording at its stimulus onsets into the 4-D layout."""
    events = find_events(raw, stim_channel=stim_channel, verbose=False)
    epochs = Epochs(raw, events=events, event_id=event_id, tmin=tmin, tmax=tmax,
                    baseline=None, preload=True, verbose=False, picks=picks)
    return from_epochs(epochs, event_id)


def load_edf(path, event_id, tmax, tmin=0.0, stim_channel='stim', picks='eeg'):
    """Read an EDF session and epoch it, see epochs_from_raw."""
    raw = read_raw_edf(path, preload=True, verbose=False, stim_channel=stim_channel)
    eeg = epochs_from_raw(raw, event_id, tmax, tmin=tmin, stim_channel=stim_channel, picks=picks)
    logger.info("Loaded %s: %d targets, %d channels, %d samples, %d blocks", path, *eeg.shape)
    return eeg


def make_synthetic(num_targs=4, num_chans=3, num_smpls=250, num_blocks=4, fs=250,
                   freqs=None, noise=0.5, seed=0):
    """Sinusoidal SSVEP responses (fundamental and 2nd harmonic) in Gaussian noise.

    Each target gets a fixed frequency, phase and channel mixing, so its
    response is reproducible across blocks.
    """
    rng = np.random.default_rng(seed)
    if freqs is None:
        freqs = 8 + np.arange(num_targs)
    t = np.arange(num_smpls) / fs
    eeg = noise * rng.standard_normal((num_targs, num_chans, num_smpls, num_blocks))
    for targ_i, freq in enumerate(freqs):
        phase = (targ_i % 4) * np.pi / 2
        source = np.sin(2 * np.pi * freq * t + phase) + 0.5 * np.sin(4 * np.pi * freq * t + phase)
        mixing = rng.uniform(0.5, 1.0, num_chans)
        eeg[targ_i] += (mixing[:, np.newaxis] * source)[:, :, np.newaxis]
    return eeg
