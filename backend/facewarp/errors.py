from __future__ import annotations


class FaceWarpError(Exception):
    """Base class for alignment failures."""


class MalformedInputError(FaceWarpError, ValueError):
    """A sample has no landmarks, no bounding rect, or an unusable matrix."""


class ShapeMismatchError(FaceWarpError, ValueError):
    """A sample's point count does not match the learned mean shape."""


class UntrainedStateError(FaceWarpError, RuntimeError):
    """A model was used before it was trained or loaded."""
