import LunarRecon.core.backend.backend as backend
from LunarRecon.nn.stateful import Stateful
from LunarRecon.core.exceptions import ShapeMismatchError
from LunarRecon.core.utils import as_pair


class BaseDistribution(Stateful):
    """
    Base class for distribution strategies used by reconstruction losses.

    A distribution strategy is parametrised by the output of a network layer
    (one parameter per output element) and knows how to score a target under
    those parameters.

    Methods:
        log_prob(params, target, per_element=False):
            Log-probability of `target`. Summed to a scalar unless
            `per_element` is True.
        gradient(params, target):
            Gradient of the negative log-probability with respect to `params`,
            same shape as `params`.
        mean(params):
            Mean of the distribution.
        sample(params, seed=None):
            Random draw with the shape of `params`.

    Subclasses implement `_log_prob`, `_gradient` and `mean` on arrays whose
    element counts already match.
    """
    def check_shapes(self, params, target):
        """Raise ShapeMismatchError if element counts differ."""
        if params.size != target.size:
            raise ShapeMismatchError(
                f"{self.__class__.__name__}: params have {params.size} elements "
                f"{tuple(params.shape)}, target has {target.size} {tuple(target.shape)}"
            )

    def _prepare(self, params, target):
        params, target = as_pair(params, target)
        self.check_shapes(params, target)
        return params, target.reshape(params.shape)

    def log_prob(self, params, target, per_element: bool = False):
        params, target = self._prepare(params, target)
        log_p = self._log_prob(params, target)
        if per_element:
            return log_p
        xp = backend.get_array_module(log_p)
        return xp.sum(log_p)

    def gradient(self, params, target):
        params, target = self._prepare(params, target)
        return self._gradient(params, target)

    def sample(self, params, seed=None):
        raise NotImplementedError

    def mean(self, params):
        raise NotImplementedError

    def _log_prob(self, params, target):
        raise NotImplementedError

    def _gradient(self, params, target):
        raise NotImplementedError

    def __repr__(self):
        args = ", ".join(f"{k}={getattr(self, k)!r}" for k in self._config_fields)
        return f"{self.__class__.__name__}({args})"
