import numpy as np

import LunarRecon.core.backend.backend as backend
from LunarRecon.core.exceptions import DimensionMismatchError


def _unwrap(obj):
    """Strip framework wrappers: sparse matrices are densified, tensors yield `.data`."""
    if hasattr(obj, "toarray"):
        return obj.toarray()
    if hasattr(obj, "__array_interface__") or hasattr(obj, "__cuda_array_interface__"):
        return obj
    if hasattr(obj, "data"):
        return obj.data
    return obj


def to_array(obj, dtype=None):
    """
    Coerce `obj` into a NumPy or CuPy array.

    Accepts arrays, scalars, nested lists, framework tensors exposing `.data`
    and sparse matrices exposing `.toarray()`. Floating-point inputs keep their
    dtype unless `dtype` is given; anything else is cast to
    `backend.GLOBAL_DTYPE`.
    """
    data = _unwrap(obj)
    xp = backend.get_array_module(data)
    arr = xp.asarray(data)
    if dtype is not None:
        return arr.astype(dtype, copy=False)
    if not np.issubdtype(arr.dtype, np.floating):
        return arr.astype(backend.GLOBAL_DTYPE)
    return arr


def as_pair(predictions, targets):
    """Coerce predictions and targets to arrays on the same device and dtype."""
    predictions = to_array(predictions)
    xp = backend.get_array_module(predictions)
    targets = xp.asarray(_unwrap(targets)).astype(predictions.dtype, copy=False)
    return predictions, targets


def element_count(x) -> int:
    return int(x.size)


def ensure_buffer(buffer, like):
    """
    Return `buffer` if it can hold `like` as-is, else a fresh array shaped like it.
    """
    if (
        buffer is None
        or type(buffer) is not type(like)
        or buffer.shape != like.shape
        or buffer.dtype != like.dtype
    ):
        xp = backend.get_array_module(like)
        return xp.empty_like(like)
    return buffer


def write_output(out, values):
    """
    Copy `values` into caller-owned `out`.

    `out` must have a floating dtype, so the gradient is never truncated by
    an integer cast. It is resized in place when its shape differs; the resize
    skips NumPy's reference check, so views taken of `out` beforehand no
    longer track it. Storage that cannot be resized (views, arrays that do
    not own their memory, types without `resize` such as CuPy arrays) raises
    DimensionMismatchError and is left untouched.
    """
    dtype = getattr(out, "dtype", None)
    if dtype is None or not np.issubdtype(dtype, np.floating):
        raise DimensionMismatchError(f"Output storage must have a floating dtype, got {dtype}")
    if out.shape != values.shape:
        if not hasattr(out, "resize") or not out.flags.owndata or out.base is not None:
            raise DimensionMismatchError(
                f"Cannot resize output storage of shape {out.shape} to {values.shape}"
            )
        out.resize(values.shape, refcheck=False)
    out[...] = values
    return out
