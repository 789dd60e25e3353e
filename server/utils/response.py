# 统一API响应格式工具
# {success, data, message|error, timestamp}

from datetime import datetime, timezone
from typing import Any, Dict


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


def create_success_response(
    data: Any = None,
    message: str = "操作成功"
) -> Dict[str, Any]:
    """
    创建成功响应

    Args:
        data: 响应数据，需为可JSON序列化的结构（模型请先 model_dump(mode="json")）
        message: 成功消息

    Returns:
        标准格式的成功响应
    """
    return {
        "success": True,
        "data": data,
        "message": message,
        "timestamp": utc_timestamp()
    }


def create_error_response(
    error: str,
    data: Any = None
) -> Dict[str, Any]:
    """
    创建错误响应

    Args:
        error: 面向顾客的错误描述信息
        data: 可选的错误数据（如失败原因代码）

    Returns:
        标准格式的错误响应
    """
    return {
        "success": False,
        "error": error,
        "data": data,
        "timestamp": utc_timestamp()
    }
