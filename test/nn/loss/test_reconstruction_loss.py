# This file contains unit tests for ReconstructionLoss.
# The tests check the loss value and gradient under both reductions, the
# shape checks delegated to the distribution strategy, the cached output
# buffer, caller-supplied gradient storage and strategy injection.

import math

import numpy as np
import pytest

from LunarRecon.core import ShapeMismatchError, DimensionMismatchError
from LunarRecon.nn.dists import BernoulliDistribution, NormalDistribution
from LunarRecon.nn.loss import ReconstructionLoss


PRED = np.array([0.8, 0.2, 0.5])
TARGET = np.array([1.0, 0.0, 1.0])
SUM_LOSS = -(math.log(0.8) + math.log(0.8) + math.log(0.5))


def test_bernoulli_sum_loss():
    loss = ReconstructionLoss()
    assert loss.reduction is True
    assert float(loss.forward(PRED, TARGET)) == pytest.approx(SUM_LOSS, rel=1e-6)


def test_bernoulli_mean_loss():
    loss = ReconstructionLoss(reduction=False)
    assert float(loss(PRED, TARGET)) == pytest.approx(SUM_LOSS / 3, rel=1e-6)


def test_bernoulli_gradients():
    grad = ReconstructionLoss().backward(PRED, TARGET)
    np.testing.assert_allclose(grad, [-0.2, 0.2, -0.5], atol=1e-12)

    grad = ReconstructionLoss(reduction=False).backward(PRED, TARGET)
    np.testing.assert_allclose(grad, np.array([-0.2, 0.2, -0.5]) / 3, atol=1e-12)


def test_reduction_consistency():
    rng = np.random.RandomState(0)
    pred = rng.uniform(0.05, 0.95, size=(4, 6))
    target = (rng.uniform(size=(4, 6)) > 0.5).astype(np.float64)

    summed = ReconstructionLoss(reduction=True)
    mean = ReconstructionLoss(reduction=False)

    assert float(mean.forward(pred, target)) == pytest.approx(
        float(summed.forward(pred, target)) / pred.size, rel=1e-10)
    np.testing.assert_allclose(
        mean.backward(pred, target), summed.backward(pred, target) / pred.size, rtol=1e-12)


def test_reduction_is_read_at_call_time():
    loss = ReconstructionLoss()
    first = float(loss.forward(PRED, TARGET))
    loss.reduction = False
    second = float(loss.forward(PRED, TARGET))
    assert loss.reduction is False
    assert second == pytest.approx(first / 3)

    loss.reduction = 1
    assert loss.reduction is True


def test_forward_is_deterministic():
    loss = ReconstructionLoss(reduction=False)
    values = [float(loss.forward(PRED, TARGET)) for _ in range(5)]
    assert len(set(values)) == 1


def test_perfect_prediction_has_zero_loss():
    target = np.array([[1.0, 0.0], [0.0, 1.0]])
    assert float(ReconstructionLoss().forward(target.copy(), target)) == pytest.approx(0.0, abs=1e-8)


@pytest.mark.parametrize("reduction", [True, False])
def test_shape_mismatch(reduction):
    loss = ReconstructionLoss(reduction=reduction)
    with pytest.raises(ShapeMismatchError):
        loss.forward(PRED, np.ones(4))
    with pytest.raises(ShapeMismatchError):
        loss.backward(PRED, np.ones(4))
    assert loss.output is None


def test_matching_element_count_is_accepted():
    # (2, 3) predictions against a flat target of 6 elements
    pred = np.full((2, 3), 0.5)
    grad = ReconstructionLoss().backward(pred, np.ones(6))
    assert grad.shape == (2, 3)
    np.testing.assert_allclose(grad, -0.5)


def test_output_buffer_is_cached_and_reused():
    loss = ReconstructionLoss()
    assert loss.output is None

    grad = loss.backward(PRED, TARGET)
    assert grad is loss.output
    buffer = loss.output

    loss.backward(PRED, 1 - TARGET)
    assert loss.output is buffer
    np.testing.assert_allclose(loss.output, PRED - (1 - TARGET))

    loss.forward(PRED, TARGET)
    np.testing.assert_allclose(loss.output, PRED - (1 - TARGET))


def test_output_buffer_reallocated_on_new_shape():
    loss = ReconstructionLoss()
    loss.backward(PRED, TARGET)
    first = loss.output

    cube = np.full((2, 2, 2), 0.25)
    loss.backward(cube, np.zeros((2, 2, 2)))
    assert loss.output is not first
    assert loss.output.shape == (2, 2, 2)


def test_failed_backward_leaves_output_untouched():
    loss = ReconstructionLoss()
    loss.backward(PRED, TARGET)
    before = loss.output.copy()

    with pytest.raises(ShapeMismatchError):
        loss.backward(np.array([0.1, 0.1, 0.1]), np.ones(2))
    np.testing.assert_array_equal(loss.output, before)


def test_backward_writes_into_supplied_storage():
    loss = ReconstructionLoss(reduction=False)
    out = np.zeros(3)
    result = loss.backward(PRED, TARGET, out=out)

    assert result is out
    np.testing.assert_allclose(out, np.array([-0.2, 0.2, -0.5]) / 3)
    np.testing.assert_allclose(loss.output, out)
    assert loss.output is not out


def test_backward_rejects_unresizable_storage():
    loss = ReconstructionLoss()
    base = np.arange(8, dtype=np.float64)
    view = base[::2]  # does not own its memory

    with pytest.raises(DimensionMismatchError):
        loss.backward(PRED, TARGET, out=view)
    np.testing.assert_array_equal(base, np.arange(8, dtype=np.float64))
    assert loss.output is None


def test_backward_resizes_supplied_storage():
    loss = ReconstructionLoss()
    out = np.zeros(5)
    result = loss.backward(PRED, TARGET, out=out)

    assert result is out
    assert out.shape == (3,)
    np.testing.assert_allclose(out, [-0.2, 0.2, -0.5])


def test_backward_rejects_integer_storage():
    loss = ReconstructionLoss()
    out = np.zeros(3, dtype=np.int64)
    with pytest.raises(DimensionMismatchError):
        loss.backward(PRED, TARGET, out=out)
    np.testing.assert_array_equal(out, [0, 0, 0])
    assert loss.output is None


def test_float_dtype_is_preserved():
    pred = PRED.astype(np.float32)
    loss = ReconstructionLoss()
    assert loss.forward(pred, TARGET).dtype == np.float32
    assert loss.backward(pred, TARGET).dtype == np.float32

    pred64 = PRED.astype(np.float64)
    assert loss.backward(pred64, TARGET.astype(np.float32)).dtype == np.float64


def test_lists_and_tensor_like_inputs():
    class FakeTensor:
        def __init__(self, data):
            self.data = np.asarray(data)

    loss = ReconstructionLoss()
    value = float(loss.forward(FakeTensor(PRED), [1, 0, 1]))
    assert value == pytest.approx(SUM_LOSS, rel=1e-6)


def test_normal_strategy_injection():
    loss = ReconstructionLoss(reduction=False, dist=NormalDistribution(stddev=2.0))
    pred = np.array([1.0, 2.0, 3.0, 4.0])
    target = np.array([1.5, 2.0, 2.0, 5.0])

    expected = np.mean(0.5 * ((target - pred) / 2.0) ** 2 + math.log(2.0)
                       + 0.5 * math.log(2 * math.pi))
    assert float(loss.forward(pred, target)) == pytest.approx(expected)
    np.testing.assert_allclose(loss.backward(pred, target), (pred - target) / 4.0 / 4)


def test_custom_strategy_per_element_log_prob():
    class SquaredStrategy:
        """log P = -(p - t)^2 per element."""
        def log_prob(self, params, target):
            return -(params - target) ** 2

        def gradient(self, params, target):
            return 2 * (params - target)

    loss = ReconstructionLoss(dist=SquaredStrategy())
    pred = np.array([1.0, 2.0])
    target = np.array([0.0, 0.0])
    assert float(loss.forward(pred, target)) == pytest.approx(5.0)
    np.testing.assert_allclose(loss.backward(pred, target), [2.0, 4.0])


def test_state_dict_round_trip():
    loss = ReconstructionLoss(reduction=False, dist=BernoulliDistribution(apply_logistic=True, eps=1e-6))
    state = loss.state_dict()

    assert state["reduction"] is False
    assert state["dist"] == {"_type": "BernoulliDistribution", "apply_logistic": True, "eps": 1e-6}

    restored = ReconstructionLoss(dist=BernoulliDistribution())
    restored.load_state_dict(state)
    assert restored.reduction is False
    assert restored.dist.apply_logistic is True
    assert restored.dist.eps == 1e-6


def test_load_state_dict_rejects_other_strategy():
    state = ReconstructionLoss(reduction=False, dist=NormalDistribution(3.0)).state_dict()
    loss = ReconstructionLoss()
    with pytest.raises(ValueError):
        loss.load_state_dict(state)
    assert loss.reduction is True


class _DuckStrategy:
    """Implements the strategy calls without the persistence hooks."""
    def log_prob(self, params, target):
        return -(params - target) ** 2

    def gradient(self, params, target):
        return 2 * (params - target)


def test_duck_typed_strategy_cannot_be_persisted():
    loss = ReconstructionLoss(dist=_DuckStrategy())
    with pytest.raises(ValueError):
        loss.state_dict()
    with pytest.raises(ValueError):
        loss.get_config()


def test_load_state_dict_keeps_duck_typed_strategy():
    dist = _DuckStrategy()
    loss = ReconstructionLoss(dist=dist)
    for saved in ("<_DuckStrategy object>", BernoulliDistribution().state_dict()):
        with pytest.raises(ValueError):
            loss.load_state_dict({"_type": "ReconstructionLoss", "reduction": False, "dist": saved})
        assert loss.dist is dist
        assert loss.reduction is True
    assert float(loss.forward(np.array([1.0]), np.array([0.0]))) == pytest.approx(1.0)


def test_load_state_dict_rejects_string_in_place_of_strategy():
    loss = ReconstructionLoss()
    with pytest.raises(ValueError):
        loss.load_state_dict({"_type": "ReconstructionLoss", "reduction": False, "dist": "BernoulliDistribution()"})
    assert isinstance(loss.dist, BernoulliDistribution)
    assert loss.reduction is True


def test_config_round_trip():
    loss = ReconstructionLoss(reduction=False, dist=NormalDistribution(stddev=0.5))
    rebuilt = ReconstructionLoss.from_config(loss.get_config())

    assert isinstance(rebuilt, ReconstructionLoss)
    assert rebuilt.reduction is False
    assert isinstance(rebuilt.dist, NormalDistribution)
    assert rebuilt.dist.stddev == 0.5
    assert rebuilt.output is None


def test_repr():
    assert repr(ReconstructionLoss(reduction=False)) == (
        "ReconstructionLoss(reduction=mean, dist=BernoulliDistribution(apply_logistic=False, eps=1e-10))"
    )
