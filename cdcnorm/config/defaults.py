from yacs.config import CfgNode as CN

# -----------------------------------------------------------------------------
# Convention about model / utterance specific parameters
# -----------------------------------------------------------------------------
# The codebook (means, variances, priors, corrections) is trained once and
# shared by every utterance. Noise and tilt are estimated per utterance and are
# handed in together with the codebook, so none of them live in the config.

# -----------------------------------------------------------------------------
# Config definition
# -----------------------------------------------------------------------------

_C = CN()

_C.MODEL = CN()
# Device for the torch backend
_C.MODEL.DEVICE = "cpu"

# -----------------------------------------------------------------------------
# CDCN
# -----------------------------------------------------------------------------
_C.CDCN = CN()
# Run normalization at all
_C.CDCN.ENABLED = True
# Cepstral order, every vector has NUM_COEFF + 1 coefficients
_C.CDCN.NUM_COEFF = 12
# "numpy" or "torch"
_C.CDCN.BACKEND = "numpy"
# Codewords summed into the numerator: "all", or "skip_first" to leave
# codeword 0 out of the numerator while keeping it in the denominator
_C.CDCN.NUMERATOR = "all"
# What to do with a frame whose weights all underflow:
# "subtract_tilt" or "passthrough"
_C.CDCN.ZERO_DEN_POLICY = "subtract_tilt"
# Frames evaluated together, bounds memory at BLOCK_SIZE * num_codes * D
_C.CDCN.BLOCK_SIZE = 256
# Check the environment model before every utterance
_C.CDCN.VALIDATE = True

# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------
_C.ENGINE = CN()
# Show a progress bar when normalizing a batch of utterances
_C.ENGINE.SHOW_PROGRESS = False

# ---------------------------------------------------------------------------- #
# Test options
# ---------------------------------------------------------------------------- #
_C.TEST = CN()
_C.TEST.METRICS = ("MSE", "CD")
# Leave c0 (energy) out of the cepstral distance
_C.TEST.SKIP_C0 = True

# ---------------------------------------------------------------------------- #
# Misc options
# ---------------------------------------------------------------------------- #
_C.OUTPUT_DIR = ""
