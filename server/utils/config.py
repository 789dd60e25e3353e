# 配置管理工具
# 按 CONFIG_ENV 选择JSON配置文件，支持 ${ENV_VAR} 占位符

import json
import os
import logging
from typing import Dict, Any
import re

from utils.validators import validate_restaurant_status

REQUIRED_SECTIONS = ['app', 'server', 'database', 'logging', 'restaurant']

CONFIG_FILES = {
    'production': 'config/config-prod.json',
    'development': 'config/config-dev.json',
}

SERVER_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _replace_env_vars(value: str) -> str:
    """
    替换环境变量占位符
    将 ${ENV_VAR} 格式的占位符替换为实际的环境变量值，环境变量不存在时保持原样
    """
    def replace_match(match):
        env_var = match.group(1)
        return os.getenv(env_var, match.group(0))

    return re.sub(r'\$\{([^}]+)\}', replace_match, value)


def _process_config_values(config: Any) -> Any:
    """递归处理配置值，替换环境变量"""
    if isinstance(config, dict):
        return {k: _process_config_values(v) for k, v in config.items()}
    elif isinstance(config, list):
        return [_process_config_values(item) for item in config]
    elif isinstance(config, str):
        return _replace_env_vars(config)
    else:
        return config


def _resolve_path(path: str) -> str:
    # 相对路径一律从server目录开始计算
    if os.path.isabs(path):
        return path
    return os.path.join(SERVER_DIR, path)


def load_config() -> Dict[str, Any]:
    """
    加载配置文件
    根据 CONFIG_ENV 环境变量选择配置文件

    Returns:
        配置字典
    """
    config_env = os.getenv('CONFIG_ENV', 'development')
    config_file = _resolve_path(CONFIG_FILES.get(config_env, 'config/config.json'))

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = json.load(f)

        config = _process_config_values(config)
        logging.info(f"成功加载配置文件: {config_file}")
        return config

    except FileNotFoundError:
        logging.error(f"配置文件不存在: {config_file}")
        raise
    except json.JSONDecodeError as e:
        logging.error(f"配置文件JSON格式错误: {e}")
        raise


def get_database_path(config: Dict[str, Any]) -> str:
    """
    获取数据库路径

    ':memory:' 原样返回，其他相对路径按server目录解析
    """
    db_path = config.get('database', {}).get('path', 'data/storefront.db')
    if db_path == ':memory:':
        return db_path
    return _resolve_path(db_path)


def validate_config(config: Dict[str, Any]) -> bool:
    """
    验证配置文件的完整性

    Returns:
        验证结果
    """
    for section in REQUIRED_SECTIONS:
        if section not in config:
            logging.error(f"配置文件缺少必需的section: {section}")
            return False

    restaurant = config.get('restaurant', {})
    if not restaurant.get('whatsapp_number'):
        logging.error("餐厅WhatsApp号码未配置")
        return False

    if not validate_restaurant_status(restaurant.get('status', 'open')):
        logging.error(f"餐厅营业状态无效: {restaurant.get('status')}")
        return False

    return True


class Config:
    """
    配置管理类
    """
    def __init__(self):
        self.env = os.getenv('CONFIG_ENV', 'development')
        self.config = load_config()

        if not validate_config(self.config):
            raise ValueError("配置文件验证失败")

    def get(self, key: str, default=None):
        """
        获取配置项，支持点号分隔的嵌套键

        Args:
            key: 配置键，支持 'restaurant.name' 格式
            default: 默认值
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_database_config(self) -> Dict[str, Any]:
        db_config = self.config.get('database', {}).copy()
        db_config['path'] = get_database_path(self.config)
        return db_config

    def get_restaurant_config(self) -> Dict[str, Any]:
        return self.config.get('restaurant', {}).copy()
