from __future__ import annotations


class RPCAError(Exception):
    """Base class for solver errors."""


class ArgumentError(RPCAError, TypeError):
    """Required input missing or an unknown option was passed."""
