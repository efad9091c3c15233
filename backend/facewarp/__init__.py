"""Landmark-based face alignment: Procrustes mean shape plus piecewise affine warping."""

__version__ = "0.1.0"
