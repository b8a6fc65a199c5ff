import LunarRecon.core.backend.backend as backend
from LunarRecon.nn.dists import BaseDistribution
from LunarRecon.core.utils import to_array


class BernoulliDistribution(BaseDistribution):
    """
    Element-wise Bernoulli distribution.

    Each parameter describes one binary output unit, either directly as a
    probability or as log-odds passed through a sigmoid.

    Args:
        apply_logistic (bool, optional): If True, params are log-odds and the
            probability is sigmoid(params). If False (default), params are
            probabilities in [0, 1].
        eps (float, optional): Added inside the logs when params are
            probabilities to avoid log(0). Default is 1e-10.

    Notes:
        `gradient` returns p - target, the gradient of the negative
        log-likelihood with respect to the log-odds. With `apply_logistic=True`
        that is the exact derivative with respect to params. With probability
        params it is the fused sigmoid + cross-entropy gradient, meant to be
        fed back past the sigmoid that produced the probabilities.
    """
    _config_fields = ("apply_logistic", "eps")

    def __init__(self, apply_logistic: bool = False, eps: float = 1e-10):
        self.apply_logistic = bool(apply_logistic)
        self.eps = float(eps)

    def probability(self, params):
        params = to_array(params)
        if not self.apply_logistic:
            return params
        xp = backend.get_array_module(params)
        # sigmoid(z) = exp(-softplus(-z)), stable for large |z|
        return xp.exp(-xp.logaddexp(0, -params)).astype(params.dtype, copy=False)

    def mean(self, params):
        return self.probability(params)

    def sample(self, params, seed=None):
        p = self.probability(params)
        xp = backend.get_array_module(p)
        rng = xp.random.RandomState(seed) if seed is not None else xp.random
        return (rng.random_sample(p.shape) < p).astype(p.dtype)

    def _log_prob(self, params, target):
        xp = backend.get_array_module(params)
        if self.apply_logistic:
            # log sigmoid(z) = -softplus(-z), log(1 - sigmoid(z)) = -softplus(z)
            return -(target * xp.logaddexp(0, -params) + (1 - target) * xp.logaddexp(0, params))
        return target * xp.log(params + self.eps) + (1 - target) * xp.log(1 - params + self.eps)

    def _gradient(self, params, target):
        return self.probability(params) - target
