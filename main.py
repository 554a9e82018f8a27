"""Leave-one-block-out evaluation of (ensemble) TRCA-based SSVEP detection.

Each recording block is held out once: the model is trained on the
remaining blocks, every target of the held-out block is classified, and
accuracy and ITR are reported per fold and as a mean with a normal-fit
confidence interval.
"""
import logging
import os
from argparse import ArgumentParser
from dataclasses import dataclass

import numpy as np
import matplotlib.pyplot as plt
from sklearn import metrics

import config
from analysis import (format_fold, format_summary, itr, plot_confusion_matrix,
                      plot_fold_results, results_frame, summarize)
from dataset import analysis_window, crop, load_data, load_edf, make_synthetic
from exceptions import DatasetShapeError
from trca import test_trca, train_trca

logger = logging.getLogger(__name__)


@dataclass
class FoldResult:
    block: int  # 1-based index of the held-out block
    accuracy: float  # [%]
    itr: float  # [bits/min]
    estimated: np.ndarray


def cross_validate(eeg, train, classify, itr_fn, *, fs, num_fbs, is_ensemble, len_sel_s,
                   labels=None):
    """Hold out each block of eeg (targets, channels, samples, blocks) in turn.

    train(traindata, fs, num_fbs) -> model and
    classify(testdata, model, is_ensemble) -> labels are called once per
    fold; their errors are not caught.
    """
    if eeg.ndim != 4:
        raise DatasetShapeError("EEG must be (targets, channels, samples, blocks)", eeg.shape)
    num_targs, _, _, num_blocks = eeg.shape
    if num_blocks < 2:
        raise DatasetShapeError("Leave-one-block-out needs at least 2 blocks", eeg.shape)
    labels = np.arange(num_targs) if labels is None else np.asarray(labels)

    folds = []
    for loocv_i in range(num_blocks):
        # Training stage
        traindata = np.delete(eeg, loocv_i, axis=3)
        model = train(traindata, fs, num_fbs)

        # Test stage
        testdata = eeg[:, :, :, loocv_i]
        estimated = np.asarray(classify(testdata, model, is_ensemble))

        # Evaluation
        p = metrics.accuracy_score(labels, estimated)
        folds.append(FoldResult(block=loocv_i + 1, accuracy=p * 100,
                                itr=itr_fn(num_targs, p, len_sel_s), estimated=estimated))
        logger.debug("Block %d/%d done", loocv_i + 1, num_blocks)
    return folds


def read_dataset(filename):
    """Load a .mat container, or epoch an EDF/BDF recording by its stimulus channel."""
    if os.path.splitext(filename)[1].lower() in ('.edf', '.bdf'):
        return load_edf(filename, config.EVENT_ID, config.LEN_EPOCH_S,
                        stim_channel=config.STIM_CHANNEL)
    return load_data(filename)


def run(eeg=None, filename=config.FILENAME, train=train_trca, classify=test_trca, itr_fn=itr,
        is_ensemble=config.IS_ENSEMBLE, num_fbs=config.NUM_FBS, alpha_ci=config.ALPHA_CI,
        fs=config.FS, len_delay_smpl=config.LEN_DELAY_SMPL, len_gaze_smpl=config.LEN_GAZE_SMPL,
        len_sel_s=config.LEN_SEL_S):
    """Load, crop, cross-validate and print the report."""
    method = 'ensemble TRCA-based method' if is_ensemble else 'TRCA-based method'
    print(f'Results of the {method}.')

    # Preparing data
    if eeg is None:
        eeg = read_dataset(filename)
    eeg = crop(eeg, analysis_window(len_delay_smpl, len_gaze_smpl))

    # Estimate classification performance
    folds = cross_validate(eeg, train, classify, itr_fn, fs=fs, num_fbs=num_fbs,
                           is_ensemble=is_ensemble, len_sel_s=len_sel_s)
    for fold in folds:
        print(format_fold(fold.block, fold.accuracy, fold.itr))

    # Summarize
    acc_summary = summarize([f.accuracy for f in folds], alpha_ci)
    itr_summary = summarize([f.itr for f in folds], alpha_ci)
    for line in format_summary(acc_summary, itr_summary, alpha_ci):
        print(line)
    print()
    return folds, acc_summary, itr_summary


def plot_results(folds, is_ensemble=config.IS_ENSEMBLE):
    """Per-fold bars and the confusion matrix pooled over all folds."""
    labels = np.arange(folds[0].estimated.size)
    # Stimulus frequencies only name the targets of the 40-target layout
    ticklabels = config.LIST_FREQS if labels.size == config.NUM_TARGS else labels
    title = 'Ensemble TRCA' if is_ensemble else 'TRCA'
    y_true = np.tile(labels, len(folds))
    y_pred = np.concatenate([f.estimated for f in folds])
    return (plot_fold_results(results_frame(folds), title=title),
            plot_confusion_matrix(y_true, y_pred, title, labels=labels, ticklabels=ticklabels))


def main(argv=None):
    parser = ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("filename", nargs="?",
                        help=f".mat or .edf dataset (default: {config.FILENAME}, "
                             "or synthetic data when that file is absent)")
    parser.add_argument("--plot", action="store_true", help="show per-fold and confusion plots")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    eeg = None
    filename = args.filename
    if filename is None:
        filename = config.FILENAME
        if not os.path.exists(filename):
            logger.warning("%s not found, using a synthetic %d-target dataset",
                           filename, config.NUM_TARGS)
            eeg = make_synthetic(num_targs=config.NUM_TARGS, num_chans=len(config.CHANNELS),
                                 num_smpls=5 * config.FS, num_blocks=6, fs=config.FS,
                                 freqs=config.LIST_FREQS)

    folds, _, _ = run(eeg=eeg, filename=filename)

    if args.plot:
        plot_results(folds)
        plt.show()


if __name__ == '__main__':
    main()
