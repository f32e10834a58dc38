from __future__ import annotations
import torch

def pick_device(device: str | torch.device | None = None, like: torch.Tensor | None = None) -> torch.device:
    """Return the device the solver works on.

    'auto' (or None) keeps a tensor input where it already lives, otherwise
    prefers cuda when available.
    """
    if isinstance(device, torch.device):
        return device
    if device in (None, "", "auto"):
        if like is not None:
            return like.device
        return torch.device("cuda" if torch.cuda.is_available() else "cpu")
    if device not in ("cpu", "cuda"):
        raise ValueError(f"device must be 'auto', 'cpu', or 'cuda', got: {device}")
    if device == "cuda" and not torch.cuda.is_available():
        # don't hard-fail; make it explicit
        return torch.device("cpu")
    return torch.device(device)
