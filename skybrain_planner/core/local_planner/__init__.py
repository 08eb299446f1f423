"""
Local Planner 局部規劃器模組
"""

from .replanner import DynamicReplanner

__all__ = [
    'DynamicReplanner'
]
