from .exceptions import ShapeMismatchError
from .exceptions import DimensionMismatchError

from .backend.backend import gpu_available
from .backend.backend import is_gpu
from .backend.backend import device_name
from .backend.backend import get_device
from .backend.backend import get_array_module
from .backend.backend import synchronize
from .backend.backend import use_gpu
from .backend.backend import use_cpu
from .backend.backend import set_seed
from .backend.backend import set_dtype
from .backend.backend import set_verbose
from .backend.context import gpu_scope
from .backend.context import precision_scope

from .utils import to_array
from .utils import element_count

from . import engine

__all__ = [
    "ShapeMismatchError",
    "DimensionMismatchError",
    "gpu_available",
    "is_gpu",
    "device_name",
    "get_device",
    "get_array_module",
    "synchronize",
    "use_gpu",
    "use_cpu",
    "set_seed",
    "set_dtype",
    "set_verbose",
    "gpu_scope",
    "precision_scope",
    "to_array",
    "element_count",
    "engine"
]
