import math

import LunarRecon.core.backend.backend as backend
from LunarRecon.nn.dists import BaseDistribution
from LunarRecon.core.utils import to_array

_HALF_LOG_2PI = 0.5 * math.log(2.0 * math.pi)


class NormalDistribution(BaseDistribution):
    """
    Element-wise Gaussian with a fixed standard deviation.

    Params are the per-element means produced by the decoder. With
    `stddev=1.0` the negative log-likelihood is half the squared error plus a
    constant, so the gradient is simply params - target.

    Args:
        stddev (float, optional): Standard deviation shared by all elements.
            Must be > 0. Default is 1.0.
    """
    _config_fields = ("stddev",)

    def __init__(self, stddev: float = 1.0):
        if stddev <= 0:
            raise ValueError("stddev must be > 0")
        self.stddev = float(stddev)

    def mean(self, params):
        return to_array(params)

    def sample(self, params, seed=None):
        mu = to_array(params)
        xp = backend.get_array_module(mu)
        rng = xp.random.RandomState(seed) if seed is not None else xp.random
        return (mu + self.stddev * rng.standard_normal(mu.shape)).astype(mu.dtype)

    def _log_prob(self, params, target):
        z = (target - params) / self.stddev
        return -0.5 * z * z - math.log(self.stddev) - _HALF_LOG_2PI

    def _gradient(self, params, target):
        return (params - target) / (self.stddev * self.stddev)
