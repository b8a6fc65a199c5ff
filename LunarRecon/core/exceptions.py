class ShapeMismatchError(ValueError):
    """Raised when predictions and targets disagree in element count."""


class DimensionMismatchError(ValueError):
    """Raised when output storage cannot be resized to the gradient's shape."""
