"""
Geometry 幾何運算模組
"""

from .intersection import (
    point_in_sphere,
    point_to_segment_distance,
    segment_intersects_sphere,
    segment_segment_distance
)

__all__ = [
    'point_in_sphere',
    'point_to_segment_distance',
    'segment_intersects_sphere',
    'segment_segment_distance'
]
