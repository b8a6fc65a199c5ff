import numpy as np

from LunarRecon.core.utils import to_array


def gradient_check(loss, predictions, targets, epsilon=1e-5, tolerance=1e-6,
                   num_checks=10, seed=None, verbose=True):
    """
    Gradient checker for LunarRecon losses.

    Compares `loss.backward` against central finite differences of
    `loss.forward` at randomly picked prediction elements. Runs in float64 on
    a copy of `predictions`.

    Args:
        loss: Loss instance exposing .forward(predictions, targets) and
            .backward(predictions, targets).
        predictions: prediction batch
        targets: target batch
        epsilon: small step for finite differences
        tolerance: maximum allowed relative error
        num_checks: how many random elements to test
        seed: seed for picking elements
        verbose: print a line per checked element

    Returns:
        True if gradients are correct, False otherwise
    """
    predictions = to_array(predictions, dtype=np.float64).copy()
    targets = to_array(targets, dtype=np.float64)
    rng = np.random.RandomState(seed)

    # Forward + backward to compute analytical grads
    value = float(loss.forward(predictions, targets))
    grad = loss.backward(predictions, targets).copy()

    if verbose:
        print(f"Initial loss: {value:.6f}")

    name = loss.__class__.__name__
    for _ in range(num_checks):
        idx = tuple(int(rng.randint(s)) for s in predictions.shape)
        old_val = float(predictions[idx])

        # Numerical gradient
        predictions[idx] = old_val + epsilon
        loss_plus = float(loss.forward(predictions, targets))

        predictions[idx] = old_val - epsilon
        loss_minus = float(loss.forward(predictions, targets))

        predictions[idx] = old_val  # restore

        g_num = (loss_plus - loss_minus) / (2 * epsilon)
        g_anal = float(grad[idx])

        # Relative error
        rel_error = abs(g_num - g_anal) / max(1e-8, abs(g_num) + abs(g_anal))

        if verbose:
            print(f"[{name}{idx}] "
                  f"anal={g_anal:.6e}, num={g_num:.6e}, err={rel_error:.2e}")

        if rel_error > tolerance:
            if verbose:
                print("❌ Gradient check FAILED!")
            return False

    if verbose:
        print("✅ All gradients check out!")
    return True
