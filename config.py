"""Analysis parameters for the TRCA-based SSVEP detection tutorial.

The sample dataset is a 40-target SSVEP recording from a single subject,
stimuli generated by joint frequency-phase modulation:
    - Stimulus frequencies : 8.0 - 15.8 Hz with an interval of 0.2 Hz
    - Stimulus phases      : 0pi, 0.5pi, 1.0pi, and 1.5pi
    - Channels             : 9 (Pz, PO5, PO3, POz, PO4, PO6, O1, Oz, O2)
    - Recording blocks     : 6
    - Epoch length         : 5 [s]
    - Sampling rate        : 250 [Hz]
"""
import numpy as np


def round_half_up(x):
    return int(np.floor(x + 0.5))


# Parameters for analysis (modify according to your analysis)
FILENAME = 'data/sample.mat'
LEN_GAZE_S = 0.5  # data length for target identification [s]
LEN_DELAY_S = 0.13  # visual latency being considered in the analysis [s]
NUM_FBS = 5  # number of sub-bands in filter bank analysis
IS_ENSEMBLE = True  # True -> ensemble TRCA, False -> TRCA
ALPHA_CI = 0.05  # 100*(1-alpha_ci): confidence intervals

# Fixed parameters (modify according to the experimental setting)
FS = 250  # sampling rate [Hz]
LEN_SHIFT_S = 0.5  # duration for gaze shifting [s]
LIST_FREQS = np.round(np.concatenate([np.arange(8, 16) + 0.2 * k for k in range(5)]), 1)
CHANNELS = ['Pz', 'PO5', 'PO3', 'POz', 'PO4', 'PO6', 'O1', 'Oz', 'O2']

NUM_TARGS = len(LIST_FREQS)
LABELS = np.arange(NUM_TARGS)

# EDF recordings: stimulus channel code k+1 marks target k
STIM_CHANNEL = 'stim'
EVENT_ID = {f'{freq:.1f} Hz': targ_i + 1 for targ_i, freq in enumerate(LIST_FREQS)}
LEN_EPOCH_S = 5.0  # epoch length after each stimulus onset [s]

# Derived values
LEN_GAZE_SMPL = round_half_up(LEN_GAZE_S * FS)
LEN_DELAY_SMPL = round_half_up(LEN_DELAY_S * FS)
LEN_SEL_S = LEN_GAZE_S + LEN_SHIFT_S  # selection time [s]
