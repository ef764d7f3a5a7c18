"""LLL lattice reduction and minimum-image distances for periodic cells"""
from .version import __version__
from .cell import *
from .images import image_offsets, minimum_image, minimum_image_vectors
from .reduction import *
from .structure import Structure
