"""运行配置加载。检测阈值是固定常量，不在此配置。"""

import json
import logging

logger = logging.getLogger(__name__)

DEFAULTS = {
    "camera_index": 0,
    "reset_on_resume": False,
    "report_model": "gemini-2.5-flash",
    "report_timeout": 15.0,
    "api_key": None,
}


def load_config(config_path=None):
    """从 JSON 配置文件加载参数，缺失字段使用默认值。"""
    config = dict(DEFAULTS)

    if config_path is None:
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("配置文件不存在 %s，使用默认配置", config_path)
        return config
    except json.JSONDecodeError:
        logger.warning("配置文件格式错误 %s，使用默认配置", config_path)
        return config

    if not isinstance(data, dict):
        logger.warning("配置文件格式错误 %s，使用默认配置", config_path)
        return config

    # 用配置文件中的值覆盖默认值
    for key in DEFAULTS:
        if key in data and data[key] is not None:
            config[key] = data[key]

    return config
