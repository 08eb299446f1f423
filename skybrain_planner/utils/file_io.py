"""
文件讀寫工具模組
提供 JSON、YAML 設定檔的讀寫功能
"""

import os
import json
from typing import Any, Dict, Optional

import yaml

from .logger import get_logger


logger = get_logger('SkyBrainPlanner.file_io')


def _ensure_parent_dir(filepath: str):
    """確保文件所在目錄存在"""
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)


# ==========================================
# JSON 文件讀寫
# ==========================================
def read_json(filepath: str) -> Optional[Dict[str, Any]]:
    """
    讀取 JSON 文件

    參數:
        filepath: 文件路徑

    返回:
        JSON 資料字典，失敗返回 None
    """
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return data
    except FileNotFoundError:
        logger.warning(f"文件不存在: {filepath}")
        return None
    except json.JSONDecodeError as e:
        logger.error(f"JSON 解析錯誤: {e}")
        return None
    except OSError as e:
        logger.error(f"讀取 JSON 失敗: {e}")
        return None


def write_json(filepath: str, data: Dict[str, Any],
              indent: int = 4, ensure_ascii: bool = False) -> bool:
    """
    寫入 JSON 文件

    參數:
        filepath: 文件路徑
        data: 要寫入的資料
        indent: 縮排空格數
        ensure_ascii: 是否確保 ASCII 編碼

    返回:
        是否成功
    """
    try:
        _ensure_parent_dir(filepath)

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii)
        return True
    except (OSError, TypeError) as e:
        logger.error(f"寫入 JSON 失敗: {e}")
        return False


# ==========================================
# YAML 文件讀寫
# ==========================================
def read_yaml(filepath: str) -> Optional[Dict[str, Any]]:
    """
    讀取 YAML 文件

    參數:
        filepath: 文件路徑

    返回:
        YAML 資料字典，失敗返回 None
    """
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return data
    except FileNotFoundError:
        logger.warning(f"文件不存在: {filepath}")
        return None
    except yaml.YAMLError as e:
        logger.error(f"YAML 解析錯誤: {e}")
        return None
    except OSError as e:
        logger.error(f"讀取 YAML 失敗: {e}")
        return None


def write_yaml(filepath: str, data: Dict[str, Any]) -> bool:
    """
    寫入 YAML 文件

    參數:
        filepath: 文件路徑
        data: 要寫入的資料

    返回:
        是否成功
    """
    try:
        _ensure_parent_dir(filepath)

        with open(filepath, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)
        return True
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"寫入 YAML 失敗: {e}")
        return False


def read_config_file(filepath: str) -> Optional[Dict[str, Any]]:
    """
    依副檔名讀取設定檔（.yaml / .yml / .json）

    參數:
        filepath: 文件路徑

    返回:
        資料字典，失敗返回 None
    """
    extension = os.path.splitext(filepath)[1].lower()
    if extension in ('.yaml', '.yml'):
        return read_yaml(filepath)
    return read_json(filepath)


def write_config_file(filepath: str, data: Dict[str, Any]) -> bool:
    """依副檔名寫入設定檔"""
    extension = os.path.splitext(filepath)[1].lower()
    if extension in ('.yaml', '.yml'):
        return write_yaml(filepath, data)
    return write_json(filepath, data)
