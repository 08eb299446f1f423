"""
Trajectory 軌跡處理模組
路徑平滑、路徑指標和軌跡合成
"""

from .smoother import (
    PathSmoother,
    PathMetrics,
    calculate_path_metrics
)

from .synthesizer import (
    TrajectoryPoint,
    TrajectorySynthesizer
)

__all__ = [
    'PathSmoother',
    'PathMetrics',
    'calculate_path_metrics',
    'TrajectoryPoint',
    'TrajectorySynthesizer'
]
