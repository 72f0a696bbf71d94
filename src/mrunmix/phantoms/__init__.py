"""Numerical phantoms for testing and examples."""

from mrunmix.phantoms.coils import birdcage_2d

__all__ = ["birdcage_2d"]
