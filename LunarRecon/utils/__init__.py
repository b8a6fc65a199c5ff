from .gradient_check import gradient_check

__all__ = [
    "gradient_check"
]
