from .delaunay import DelaunayMeshBuilder, Triangle
from .mean_image import MeanImageModel
from .piecewise_warp import PiecewiseAffineWarper, draw_mesh
from .procrustes import ProcrustesAligner
from .shape_normalizer import NormalizedShape, normalize, to_canonical_frame

__all__ = [
    "DelaunayMeshBuilder",
    "MeanImageModel",
    "NormalizedShape",
    "PiecewiseAffineWarper",
    "ProcrustesAligner",
    "Triangle",
    "draw_mesh",
    "normalize",
    "to_canonical_frame",
]
