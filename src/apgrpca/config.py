from __future__ import annotations
import logging
from dataclasses import dataclass, fields, replace
from typing import Any

import torch

from .errors import ArgumentError

logger = logging.getLogger(__name__)

DEFAULT_ETA = 0.9


@dataclass(frozen=True)
class APGConfig:
    tol: float = 1e-6
    max_iter: int = 1000
    line_search: bool = False
    continuation: bool = True
    eta: float = DEFAULT_ETA  # line search shrink factor, in (0, 1)
    mu: float = 1e-3  # fixed relaxation, only used without continuation
    mu_bar_ratio: float = 1e-9  # floor of mu relative to mu_0
    mu_decay: float = 0.9
    mu_start_ratio: float = 0.99
    tau_0: float = 2.0  # Lipschitz constant of the coupled least-squares term
    max_line_search_iter: int = 200
    display_every: int = 20
    verbose: bool = True
    device: str | torch.device | None = None
    dtype: torch.dtype = torch.float64

    @classmethod
    def option_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_options(cls, base: APGConfig | None = None, **options: Any) -> APGConfig:
        """Build a config where every option that is absent or None keeps its default."""
        unknown = set(options) - cls.option_names()
        if unknown:
            raise ArgumentError(f"Unknown solver option(s): {sorted(unknown)}")

        present = {k: v for k, v in options.items() if v is not None}
        return replace(base, **present) if base is not None else cls(**present)

    def __post_init__(self) -> None:
        if not 0 < self.eta < 1:
            logger.warning(
                "Line search parameter eta=%s out of bounds (0, 1), switching to default %s",
                self.eta,
                DEFAULT_ETA,
            )
            object.__setattr__(self, "eta", DEFAULT_ETA)
