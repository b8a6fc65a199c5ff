from . import core
from . import nn
from . import utils

from .nn.dists import BernoulliDistribution, NormalDistribution
from .nn.loss import ReconstructionLoss

__all__ = [
    "core",
    "nn",
    "utils",
    "BernoulliDistribution",
    "NormalDistribution",
    "ReconstructionLoss"
]
