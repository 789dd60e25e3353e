# 请求日志中间件

import time
import uuid
import logging
from fastapi import FastAPI, Request
from typing import Dict, Any

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def setup_logging_middleware(app: FastAPI, config: Dict[str, Any]):
    """
    为每个请求生成短请求ID，记录方法、路径、状态码和耗时
    """

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        start_time = time.perf_counter()

        logger.info(
            f"[{request_id}] {request.method} {request.url.path} - "
            f"Client: {request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"[{request_id}] ERROR - {str(e)} - "
                f"Time: {time.perf_counter() - start_time:.3f}s"
            )
            raise

        logger.info(
            f"[{request_id}] {response.status_code} - "
            f"Time: {time.perf_counter() - start_time:.3f}s"
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
