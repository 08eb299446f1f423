"""
規劃例外模組
"""


class PlanningError(Exception):
    """路徑規劃相關錯誤的基類"""
    pass


class ConstraintError(PlanningError, ValueError):
    """飛行約束格式錯誤（例如最小高度大於最大高度）"""
    pass


class MapConfigurationError(PlanningError, ValueError):
    """地圖邊界或網格解析度設定錯誤"""
    pass
