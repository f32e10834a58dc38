"""Accelerated proximal gradient (APG) solver for Robust PCA.

Decomposes D into a low-rank A and a sparse E by minimising

    mu * ||A||_* + lam * mu * ||E||_1 + 0.5 * ||D - A - E||_F^2

with Nesterov momentum, continuation on mu and an optional backtracking
line search on the step scale tau.

References:
    A. Ganesh, Z. Lin, J. Wright, L. Wu, M. Chen, Y. Ma, "Fast algorithms for
    recovering a corrupted low-rank matrix", CAMSAP 2009.
    K.-C. Toh, S. Yun, "An accelerated proximal gradient algorithm for nuclear
    norm regularized least squares problems", 2009.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import torch

from .config import APGConfig
from .device import pick_device
from .diagnostics import DiagnosticSink, IterationRecord, SinkTarget, open_sink
from .errors import ArgumentError
from .prox import singular_value_threshold, soft_threshold

logger = logging.getLogger(__name__)


@dataclass
class RPCAResult:
    """Low-rank A, sparse E and the iteration history of one solve."""
    A: Any
    E: Any
    num_iter: int
    converged: bool
    stopping_criterion: float
    mu_bar: float
    mu_path: list[float] = field(default_factory=list)
    tau_path: list[float] = field(default_factory=list)

    def as_tuple(self) -> tuple[Any, Any, int]:
        return self.A, self.E, self.num_iter


@dataclass
class _Candidate:
    G_A: torch.Tensor
    G_E: torch.Tensor
    A: torch.Tensor
    E: torch.Tensor
    sigma: torch.Tensor  # singular values of G_A before shrinkage
    tau: float


def _sq_norm(X: torch.Tensor) -> float:
    return torch.sum(X * X).item()


def _block_norm(X: torch.Tensor, Y: torch.Tensor) -> float:
    """Frobenius norm of the side-by-side block [X, Y]."""
    return math.sqrt(_sq_norm(X) + _sq_norm(Y))


def _proximal_step(Y_A: torch.Tensor, Y_E: torch.Tensor, D: torch.Tensor,
                   lam: float, mu: float, tau: float) -> _Candidate:
    """Gradient step on the shared least-squares term, then both proximal maps."""
    temp = (Y_A + Y_E - D) / tau
    G_A = Y_A - temp
    G_E = Y_E - temp
    A, sigma = singular_value_threshold(G_A, mu / tau)
    E = soft_threshold(G_E, lam * mu / tau)
    return _Candidate(G_A=G_A, G_E=G_E, A=A, E=E, sigma=sigma, tau=tau)


def _stopping_criterion(Y_A: torch.Tensor, Y_E: torch.Tensor,
                        A: torch.Tensor, E: torch.Tensor, tau: float) -> float:
    temp = A + E - Y_A - Y_E
    S_A = tau * (Y_A - A) + temp
    S_E = tau * (Y_E - E) + temp
    return _block_norm(S_A, S_E) / (tau * max(1.0, _block_norm(A, E)))


class AcceleratedProximalGradientSolver:
    def __init__(self, config: APGConfig | None = None):
        self.config = config if config is not None else APGConfig()

    def _as_tensor(self, D) -> torch.Tensor:
        cfg = self.config
        if isinstance(D, torch.Tensor):
            return D.to(device=pick_device(cfg.device, like=D), dtype=cfg.dtype)
        return torch.as_tensor(np.asarray(D), dtype=cfg.dtype, device=pick_device(cfg.device))

    def _line_search(self, Y_A: torch.Tensor, Y_E: torch.Tensor, D: torch.Tensor,
                     lam: float, mu: float, tau: float) -> tuple[_Candidate, float]:
        """Backtrack on tau until F(SG) <= Q(SG, Y); returns the candidate and the accepted tau."""
        cfg = self.config
        tau_hat = cfg.eta * tau
        fit_Y = _sq_norm(D - Y_A - Y_E)

        for _ in range(max(cfg.max_line_search_iter, 1)):
            cand = _proximal_step(Y_A, Y_E, D, lam, mu, tau_hat)
            F = 0.5 * _sq_norm(D - cand.A - cand.E)
            Q = 0.5 * tau_hat * (_sq_norm(cand.A - cand.G_A) + _sq_norm(cand.E - cand.G_E)) \
                + (0.5 - 1.0 / tau_hat) * fit_Y
            if F <= Q:
                return cand, tau_hat
            tau_hat = min(tau_hat / cfg.eta, cfg.tau_0)

        logger.warning(
            "Stuck in line search: no sufficient decrease after %d trials, keeping last candidate",
            cfg.max_line_search_iter,
        )
        return cand, tau

    def _initial_mu(self, D: torch.Tensor) -> tuple[float, float]:
        """Return (mu_1, mu_bar)."""
        cfg = self.config
        if not cfg.continuation:
            return cfg.mu, cfg.mu
        if not torch.isfinite(D).all():
            mu_0 = math.nan
        else:
            mu_0 = torch.linalg.matrix_norm(D, ord=2).item()
        if cfg.line_search:
            mu_0 *= cfg.eta
        return cfg.mu_start_ratio * mu_0, cfg.mu_bar_ratio * mu_0

    def _iterate(self, D: torch.Tensor, lam: float, sink: DiagnosticSink) -> RPCAResult:
        """Main loop: runs until the stopping criterion drops to tol or max_iter is hit."""
        cfg = self.config

        A_prev = torch.zeros_like(D)
        E_prev = torch.zeros_like(D)
        A_cur = torch.zeros_like(D)
        E_cur = torch.zeros_like(D)

        t_prev = 1.0
        t_cur = 1.0
        tau = cfg.tau_0
        mu, mu_bar = self._initial_mu(D)

        mu_path: list[float] = []
        tau_path: list[float] = []
        num_iter = 0
        converged = False
        stopping_criterion = math.inf

        while True:
            beta = (t_prev - 1.0) / t_cur
            Y_A = A_cur + beta * (A_cur - A_prev)
            Y_E = E_cur + beta * (E_cur - E_prev)

            if cfg.line_search:
                cand, tau = self._line_search(Y_A, Y_E, D, lam, mu, tau)
            else:
                cand = _proximal_step(Y_A, Y_E, D, lam, mu, tau)

            rank = int((cand.sigma > mu / cand.tau).sum().item())
            cardinality = int(torch.count_nonzero(cand.E).item())

            t_next = 0.5 * (1.0 + math.sqrt(1.0 + 4.0 * t_cur * t_cur))

            stopping_criterion = _stopping_criterion(Y_A, Y_E, cand.A, cand.E, tau)
            converged = stopping_criterion <= cfg.tol

            mu_path.append(mu)
            tau_path.append(tau)
            if cfg.continuation:
                mu = max(cfg.mu_decay * mu, mu_bar)

            t_prev, t_cur = t_cur, t_next
            A_prev, E_prev = A_cur, E_cur
            A_cur, E_cur = cand.A, cand.E
            num_iter += 1

            if cfg.verbose and cfg.display_every > 0 and num_iter % cfg.display_every == 0:
                print(f"Iteration {num_iter}  rank(A) {rank} ||E||_0 {cardinality}")

            sink.append(IterationRecord(
                iteration=num_iter,
                rank=rank,
                cardinality=cardinality,
                stopping_criterion=stopping_criterion,
                mu=mu_path[-1],
                tau=tau,
            ))

            if converged:
                break
            if num_iter >= cfg.max_iter:
                if cfg.verbose:
                    print("Maximum iterations reached")
                break

        sink.finalize(cfg.line_search, cfg.continuation)

        return RPCAResult(
            A=A_cur,
            E=E_cur,
            num_iter=num_iter,
            converged=converged,
            stopping_criterion=stopping_criterion,
            mu_bar=mu_bar,
            mu_path=mu_path,
            tau_path=tau_path,
        )

    @torch.no_grad()
    def solve(self, D, lam, diagnostics: SinkTarget = None) -> RPCAResult:
        """Run the solver on D with sparse weight lam.

        diagnostics may be a path, a text stream or a DiagnosticSink; it is
        closed before returning. Numpy input gives numpy A and E.
        """
        if D is None or lam is None:
            raise ArgumentError("Too few arguments: both D and lam are required")

        return_numpy = not isinstance(D, torch.Tensor)
        D_t = self._as_tensor(D)

        sink = open_sink(diagnostics)
        try:
            result = self._iterate(D_t, float(lam), sink)
        finally:
            sink.close()

        if return_numpy:
            result.A = result.A.cpu().numpy()
            result.E = result.E.cpu().numpy()
        return result


def proximal_gradient_rpca(D=None, lam=None, *, diagnostics: SinkTarget = None, **options):
    """Robust PCA via APG. Returns (A_hat, E_hat, num_iter).

    Options are the APGConfig fields (tol, max_iter, line_search, continuation,
    eta, mu, ...); any option left out or passed as None uses its default.
    """
    if D is None or lam is None:
        raise ArgumentError("Too few arguments: both D and lam are required")
    config = APGConfig.from_options(**options)
    result = AcceleratedProximalGradientSolver(config).solve(D, lam, diagnostics=diagnostics)
    return result.as_tuple()
