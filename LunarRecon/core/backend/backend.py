"""
Backend runtime selector for LunarRecon.

- Single import point for array backend (`xp`) and core runtime flags.
- Seamlessly toggle CPU (NumPy) / GPU (CuPy).
- Centralized dtype and seeding helpers.
- Minimal API surface with global-access pattern:
    >>> import LunarRecon.core.backend.backend as backend
    >>> xp = backend.xp
    >>> DTYPE = backend.DTYPE

This module is stateful so that userland code can switch device and
precision once and have every loss pick it up.
"""

from __future__ import annotations

import numpy as _np
from LunarRecon.core.backend.config import CONFIG


# ---------------------------
# Optional GPU backend (CuPy)
# ---------------------------
try:
    import cupy as _cp
    _CUPY_AVAILABLE = True
except ImportError:
    _cp = None
    _CUPY_AVAILABLE = False


# ---------------------------
# Public runtime state (globals)
# ---------------------------
xp = _np                       # current array module (NumPy or CuPy)
USING = "cpu"                  # "cpu" | "gpu"
SEED = CONFIG.get("seed", 997)
VERBOSE = bool(CONFIG.get("verbose", True))

# Dtypes
DTYPE = _np.float32            # master dtype
GLOBAL_DTYPE = _np.float32     # dtype for inputs that are not already floating point

_DTYPE_MAP = {"float16": _np.float16, "float32": _np.float32, "float64": _np.float64}


# ===========================
# Introspection / utilities
# ===========================
def gpu_available() -> bool:
    """Return True if CuPy is importable."""
    return _CUPY_AVAILABLE


def is_gpu() -> bool:
    """Return True if current backend is GPU (CuPy)."""
    return USING == "gpu"


def device_name() -> str:
    """Human-readable device name."""
    if is_gpu() and _cp is not None:
        try:
            dev_id = _cp.cuda.Device().id
            props = _cp.cuda.runtime.getDeviceProperties(dev_id)
            name = props.get("name", b"GPU").decode(errors="ignore")
            return f"GPU:{dev_id} ({name})"
        except _cp.cuda.runtime.CUDARuntimeError:
            return "GPU (CuPy)"
    return "CPU (NumPy)"


def get_device() -> str:
    """Return current device string: 'cpu' or 'gpu'."""
    return USING


def synchronize():
    """Block until all queued ops on the current device are complete."""
    if is_gpu() and _cp is not None:
        _cp.cuda.Stream.null.synchronize()


def get_array_module(*arrays):
    """
    Return the array module (NumPy or CuPy) that owns `arrays`.

    Falls back to the active backend module when none of the arguments
    is a CuPy array.
    """
    if _CUPY_AVAILABLE:
        for a in arrays:
            if isinstance(a, _cp.ndarray):
                return _cp
    for a in arrays:
        if isinstance(a, _np.ndarray):
            return _np
    return xp


# ===========================
# Backend switching
# ===========================
def _log(msg: str):
    if VERBOSE:
        print(msg)


def _set_globals_for_numpy():
    global xp, USING
    xp = _np
    USING = "cpu"


def _set_globals_for_cupy():
    global xp, USING
    xp = _cp
    USING = "gpu"


def _auto_select_device():
    device = str(CONFIG.get("device", "cpu")).lower()
    if device == "gpu" and _CUPY_AVAILABLE:
        use_gpu()
    else:
        use_cpu()


def _set_default_dtype():
    global GLOBAL_DTYPE, DTYPE
    dtype_str = CONFIG.get("dtype", "float32")
    if dtype_str not in _DTYPE_MAP:
        raise ValueError(f"Unsupported dtype '{dtype_str}'. Use one of: {list(_DTYPE_MAP.keys())}")
    GLOBAL_DTYPE = _DTYPE_MAP[dtype_str]
    DTYPE = GLOBAL_DTYPE


def use_gpu():
    """
    Switch backend to GPU (CuPy).
    Raises ImportError if CuPy is not available.
    """
    if not _CUPY_AVAILABLE:
        raise ImportError("CuPy is not installed. Run `pip install cupy` to use GPU.")
    _set_globals_for_cupy()
    _cp.random.seed(SEED)
    _log(f"Using {device_name()}")


def use_cpu():
    """Switch backend to CPU (NumPy)."""
    _set_globals_for_numpy()
    _np.random.seed(SEED)
    _log(f"Using {device_name()}")


# Initialize to CPU by default
_set_default_dtype()
_set_globals_for_numpy()
_np.random.seed(SEED)

# Select device from config
_auto_select_device()


# ===========================
# Runtime configuration
# ===========================
def set_seed(seed: int):
    """Set RNG seed for both NumPy and CuPy (if present)."""
    global SEED
    SEED = int(seed)
    _np.random.seed(SEED)
    if _CUPY_AVAILABLE:
        _cp.random.seed(SEED)


def set_dtype(dtype: str = "float32"):
    """
    Set DTYPE and GLOBAL_DTYPE to float16, float32 or float64.
    """
    global DTYPE, GLOBAL_DTYPE
    if dtype not in _DTYPE_MAP:
        raise ValueError(f"Unsupported dtype '{dtype}'. Use one of: {list(_DTYPE_MAP.keys())}")
    DTYPE = _DTYPE_MAP[dtype]
    GLOBAL_DTYPE = DTYPE


def set_verbose(enabled: bool = True):
    """Enable/disable backend status messages."""
    global VERBOSE
    VERBOSE = bool(enabled)
