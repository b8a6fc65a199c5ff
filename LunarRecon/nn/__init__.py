from .stateful import Stateful

from . import dists
from . import loss

__all__ = [
    "Stateful",
    "dists",
    "loss"
]
