"""
Core 核心演算法模組
"""

from .exceptions import PlanningError, ConstraintError, MapConfigurationError
from .base.planner_base import PlannerFactory, PlannerType, PlannerStatus

__all__ = [
    'PlanningError', 'ConstraintError', 'MapConfigurationError',
    'PlannerFactory', 'PlannerType', 'PlannerStatus'
]
