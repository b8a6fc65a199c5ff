from .base_loss import BaseLoss

from .reconstruction_loss import ReconstructionLoss

__all__ = [
    "BaseLoss",
    "ReconstructionLoss"
]
