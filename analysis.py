"""Accuracy / ITR statistics and plots for cross-validation results."""
import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from scipy import stats
from sklearn import metrics

logger = logging.getLogger(__name__)


def itr(n, p, t):
    """Information transfer rate [bits/min].

    n: number of targets, p: accuracy in [0, 1], t: selection time [s].
    """
    if n < 2:
        raise ValueError(f"Number of targets must be at least 2, got {n}")
    if t <= 0:
        raise ValueError(f"Selection time must be positive, got {t}")
    if p < 0 or p > 1:
        raise ValueError(f"Accuracy needs to be between 0 and 1, got {p}")
    if p < 1 / n:
        logger.warning("The ITR might be incorrect because the accuracy < chance level.")
        return 0.0
    if p == 1:
        return np.log2(n) * 60 / t
    return (np.log2(n) + p * np.log2(p) + (1 - p) * np.log2((1 - p) / (n - 1))) * 60 / t


def normfit(data, alpha=0.05):
    """Normal distribution fit with 100*(1-alpha)% confidence intervals.

    Returns mu, sigma, (mu_low, mu_high), (sigma_low, sigma_high). A single
    value or zero spread gives degenerate intervals at the estimate.
    """
    if not 0 < alpha < 1:
        raise ValueError(f"alpha must be in (0, 1), got {alpha}")
    data = np.asarray(data, dtype=float).ravel()
    n = data.size
    if n == 0:
        raise ValueError("Cannot fit a normal distribution to no data")

    mu = data.mean()
    if n < 2:
        return mu, 0.0, (mu, mu), (0.0, 0.0)

    sigma = data.std(ddof=1)
    half = stats.t.ppf(1 - alpha / 2, n - 1) * sigma / np.sqrt(n)
    chi2_hi = stats.chi2.ppf(1 - alpha / 2, n - 1)
    chi2_lo = stats.chi2.ppf(alpha / 2, n - 1)
    sigmaci = (sigma * np.sqrt((n - 1) / chi2_hi), sigma * np.sqrt((n - 1) / chi2_lo))
    return mu, sigma, (mu - half, mu + half), sigmaci


@dataclass
class Summary:
    mean: float
    low: float
    high: float


def summarize(values, alpha=0.05):
    mu, _, muci, _ = normfit(values, alpha)
    return Summary(float(mu), float(muci[0]), float(muci[1]))


def format_fold(block, accuracy, itr_bpm):
    return f"Trial {block}: Accuracy = {accuracy:2.2f}%, ITR = {itr_bpm:2.2f} bpm"


def format_summary(acc, itr_summary, alpha=0.05):
    ci = int(round(100 * (1 - alpha)))
    return [
        f"Mean accuracy = {acc.mean:2.2f} % ({ci:2d}% CI: {acc.low:2.2f} - {acc.high:2.2f} %)",
        f"Mean ITR = {itr_summary.mean:2.2f} bpm ({ci:2d}% CI: "
        f"{itr_summary.low:2.2f} - {itr_summary.high:2.2f} bpm)",
    ]


def results_frame(folds):
    """One row per fold: block (1-based), accuracy [%], itr [bpm]."""
    return pd.DataFrame(
        [{'block': f.block, 'accuracy': f.accuracy, 'itr': f.itr} for f in folds],
        columns=['block', 'accuracy', 'itr'])


def plot_fold_results(results, title='TRCA', filename=None):
    """Bar plots of accuracy and ITR per held-out block with the mean marked."""
    sns.set(style="whitegrid")
    fig, axes = plt.subplots(1, 2, figsize=(10, 4))
    for ax, column, label in zip(axes, ['accuracy', 'itr'], ['Accuracy (%)', 'ITR (bpm)']):
        sns.barplot(data=results, x='block', y=column, color='steelblue', ax=ax)
        ax.axhline(results[column].mean(), color='black', linestyle='--', label='mean')
        ax.set_xlabel('Held-out block')
        ax.set_ylabel(label)
        ax.legend(loc='lower right')
    fig.suptitle(title)
    fig.tight_layout()
    if filename is not None:
        fig.savefig(filename)
    return fig


# Create confusion matrices
def plot_confusion_matrix(y_true, y_pred, title, labels, ticklabels=None):
    cm = metrics.confusion_matrix(y_true, y_pred, labels=labels)
    ticklabels = labels if ticklabels is None else ticklabels
    fig, ax = plt.subplots(figsize=(8, 6))
    sns.heatmap(cm, annot=len(labels) <= 12, fmt='d', cmap='Blues',
                xticklabels=ticklabels, yticklabels=ticklabels, ax=ax)
    ax.set_xlabel('Predicted')
    ax.set_ylabel('True')
    ax.set_title(f'{title} Confusion Matrix')
    fig.tight_layout()
    return fig
