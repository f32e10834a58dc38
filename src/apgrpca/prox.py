from __future__ import annotations
import torch


def soft_threshold(X: torch.Tensor, threshold: float) -> torch.Tensor:
    """Elementwise shrinkage sign(x) * max(|x| - threshold, 0), the prox of the L1 norm."""
    return torch.sign(X) * torch.clamp(torch.abs(X) - threshold, min=0)


def singular_value_threshold(X: torch.Tensor, threshold: float) -> tuple[torch.Tensor, torch.Tensor]:
    """Prox of the nuclear norm.

    Returns the thresholded matrix together with the singular values of X
    before shrinkage, so callers can count the surviving rank.
    """
    if not torch.isfinite(X).all():
        # svd rejects non-finite input; return NaN so it reaches the output
        nan = float("nan")
        return torch.full_like(X, nan), X.new_full((min(X.shape),), nan)
    U, sigma, Vh = torch.linalg.svd(X, full_matrices=False)
    sigma_thresh = torch.clamp(sigma - threshold, min=0)
    return (U * sigma_thresh) @ Vh, sigma
