class gpu_scope:
    """Context manager to temporarily switch computations to GPU."""
    def __enter__(self):
        import LunarRecon.core.backend.backend as backend
        self.prev_using = backend.USING

        if not backend.gpu_available():
            raise RuntimeError("GPU not available.")
        backend.use_gpu()
        return backend.xp  # optional: lets user grab xp if needed

    def __exit__(self, exc_type, exc_value, tb):
        import LunarRecon.core.backend.backend as backend
        backend.synchronize()
        if self.prev_using == "gpu":
            backend.use_gpu()
        else:
            backend.use_cpu()


class precision_scope:
    """
    Temporarily change the global floating-point precision (dtype) inside a `with` block.

    This affects the dtype that non-floating inputs (ints, bools, Python lists
    of ints) are cast to before a distribution evaluates them. Floating-point
    arrays keep their own dtype.

    Args:
        dtype (str or dtype): Precision to use ("float16", "float32", "float64", xp.float16, etc.)
    """
    def __init__(self, dtype="float32"):
        import numpy as np
        # Support both string and actual dtype
        if isinstance(dtype, str):
            dtype_map = {
                "float16": np.float16,
                "float32": np.float32,
                "float64": np.float64,
            }
            if dtype not in dtype_map:
                raise ValueError(f"Unsupported dtype '{dtype}'. Use one of: {list(dtype_map.keys())}")
            self.new_dtype = dtype_map[dtype]
        else:
            self.new_dtype = dtype

    def __enter__(self):
        import LunarRecon.core.backend.backend as backend
        self.prev_dtype = backend.GLOBAL_DTYPE
        self.prev_master = backend.DTYPE
        backend.GLOBAL_DTYPE = self.new_dtype
        backend.DTYPE = self.new_dtype
        return backend.GLOBAL_DTYPE

    def __exit__(self, exc_type, exc_value, tb):
        import LunarRecon.core.backend.backend as backend
        backend.GLOBAL_DTYPE = self.prev_dtype
        backend.DTYPE = self.prev_master
