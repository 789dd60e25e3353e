# 安全中间件：安全响应头与请求体大小限制

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from typing import Dict, Any

from utils.response import create_error_response

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUEST_SIZE = 1024 * 1024


def setup_security_middleware(app: FastAPI, config: Dict[str, Any]):
    """
    设置安全中间件

    security 段支持 max_request_size（字节）
    """
    security_config = config.get('security', {})
    max_request_size = security_config.get('max_request_size', DEFAULT_MAX_REQUEST_SIZE)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response

    @app.middleware("http")
    async def limit_request_size(request: Request, call_next):
        # 中间件中抛出的HTTPException不会经过异常处理器，这里直接返回响应
        content_length = request.headers.get('content-length')
        if content_length and content_length.isdigit() and int(content_length) > max_request_size:
            logger.warning(f"请求体 {content_length} 字节超过限制 {max_request_size}")
            return JSONResponse(status_code=413, content=create_error_response("Request entity too large"))

        return await call_next(request)
