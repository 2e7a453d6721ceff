"""Periodic transit search."""

from .bls import bls_periodogram, calculate_bls, calculate_bls_batch, period_grid

__all__ = [
    'bls_periodogram',
    'calculate_bls',
    'calculate_bls_batch',
    'period_grid'
]
