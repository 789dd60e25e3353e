# 日志配置管理工具

import logging
import logging.handlers
import os
from typing import Dict, Any

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'


def _parse_size(size_str: str) -> int:
    """解析文件大小字符串，如 '10MB' -> 10485760"""
    size_str = str(size_str).strip().upper()

    units = {'KB': 1024, 'MB': 1024 ** 2, 'GB': 1024 ** 3}
    for suffix, factor in units.items():
        if size_str.endswith(suffix):
            return int(size_str[:-len(suffix)]) * factor
    return int(size_str)


def setup_logging(config: Dict[str, Any]):
    """
    根据配置设置日志系统

    logging 段支持: level, format, file_enabled, file_path, max_file_size, backup_count,
    quiet_loggers（需要降到WARNING的第三方日志器）
    """
    log_config = config.get('logging', {})
    level_name = str(log_config.get('level', 'INFO')).upper()

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    root.setLevel(getattr(logging, level_name, logging.INFO))
    formatter = logging.Formatter(log_config.get('format', DEFAULT_FORMAT))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_config.get('file_enabled', False):
        file_path = log_config.get('file_path', 'logs/storefront.log')
        log_dir = os.path.dirname(file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            file_path,
            maxBytes=_parse_size(log_config.get('max_file_size', '10MB')),
            backupCount=log_config.get('backup_count', 5),
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in log_config.get('quiet_loggers', []):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"日志系统初始化完成，级别: {level_name}")
