"""
工具模組
提供數學計算、文件讀寫、日誌管理等基礎工具
"""

from .math_utils import (
    as_vector,
    as_tuple,
    euclidean_distance_3d,
    polyline_length,
    lerp_point,
    move_towards,
    altitude_of
)

from .file_io import (
    read_json,
    write_json,
    read_yaml,
    write_yaml,
    read_config_file,
    write_config_file
)

from .logger import (
    setup_logger,
    get_logger,
    log_execution_time
)

__all__ = [
    # Math utilities
    'as_vector',
    'as_tuple',
    'euclidean_distance_3d',
    'polyline_length',
    'lerp_point',
    'move_towards',
    'altitude_of',

    # File I/O
    'read_json',
    'write_json',
    'read_yaml',
    'write_yaml',
    'read_config_file',
    'write_config_file',

    # Logger
    'setup_logger',
    'get_logger',
    'log_execution_time'
]
