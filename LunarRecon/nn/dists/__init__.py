from .base_distribution import BaseDistribution

from .bernoulli import BernoulliDistribution
from .normal import NormalDistribution

__all__ = [
    "BaseDistribution",
    "BernoulliDistribution",
    "NormalDistribution"
]
