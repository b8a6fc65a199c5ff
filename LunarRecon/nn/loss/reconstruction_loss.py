import LunarRecon.core.backend.backend as backend
from LunarRecon.nn.loss import BaseLoss
from LunarRecon.nn.dists import BernoulliDistribution
from LunarRecon.core.utils import to_array, element_count, ensure_buffer, write_output


class ReconstructionLoss(BaseLoss):
    """
    Reconstruction loss: negative log-probability of the target under a
    distribution parametrised by the predictions.

    The predictions are the raw output of the preceding layer (e.g. a decoder)
    and are handed to the distribution strategy as its parameters. Any object
    exposing `log_prob(params, target)` and `gradient(params, target)` can be
    injected; `BernoulliDistribution` is used by default. Persisting the loss
    (`state_dict`, `get_config`, `engine.save`) requires a `BaseDistribution`
    subclass and raises ValueError for other strategies.

    Note that with the default Bernoulli strategy `backward` returns p - t, the
    gradient with respect to the log-odds. For probability predictions this is
    the fused sigmoid/cross-entropy gradient meant for a sigmoid output layer,
    not the derivative of `forward` in probability space, so a finite-difference
    check of the default loss fails. Use
    `BernoulliDistribution(apply_logistic=True)` on logits to get the exact
    derivative.

    Args:
        reduction (bool, optional): If True (default), 'sum' reduction: the
            loss is the summed negative log-probability. If False, 'mean'
            reduction: the sum is divided by the number of prediction elements,
            and so is the gradient.
        dist (BaseDistribution, optional): Distribution strategy. Default is
            `BernoulliDistribution()`.

    Methods:
        forward(predictions, targets):
            Returns the scalar loss. Does not touch `output`.
        backward(predictions, targets, out=None):
            Computes the gradient of the loss w.r.t. predictions, stores it in
            `output` and, if given, in `out`. Returns `out` or `output`.

    Raises:
        ShapeMismatchError: predictions and targets differ in element count.
        DimensionMismatchError: `out` cannot be resized to the predictions' shape
            or does not have a floating dtype.

    A single instance must not run `backward` from several threads at once,
    since every call overwrites `output`.
    """
    _config_fields = ("dist", "reduction")

    def __init__(self, reduction: bool = True, dist=None):
        self.reduction = reduction
        self.dist = dist if dist is not None else BernoulliDistribution()
        self._output = None

    @property
    def reduction(self) -> bool:
        return self._reduction

    @reduction.setter
    def reduction(self, value):
        self._reduction = bool(value)

    @property
    def output(self):
        """Gradient computed by the last `backward` call (None before the first)."""
        return self._output

    @output.setter
    def output(self, value):
        self._output = value

    def forward(self, predictions, targets):
        predictions = to_array(predictions)
        log_p = self.dist.log_prob(predictions, targets)
        xp = backend.get_array_module(log_p)
        # strategies may hand back per-element values
        loss = -xp.sum(log_p)
        if not self.reduction:
            loss = loss / element_count(predictions)
        return loss

    def backward(self, predictions, targets, out=None):
        predictions = to_array(predictions)
        grad = self.dist.gradient(predictions, targets)
        xp = backend.get_array_module(grad)
        grad = xp.asarray(grad).reshape(predictions.shape)
        if not self.reduction:
            grad = grad / element_count(predictions)
        grad = grad.astype(predictions.dtype, copy=False)

        buffer = ensure_buffer(self._output, grad)
        if out is not None:
            write_output(out, grad)
        buffer[...] = grad
        self._output = buffer
        return out if out is not None else buffer

    def __repr__(self):
        mode = "sum" if self.reduction else "mean"
        return f"ReconstructionLoss(reduction={mode}, dist={self.dist!r})"
