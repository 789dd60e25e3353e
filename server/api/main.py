# FastAPI主应用

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from api.deps import config
from utils.logger import setup_logging
from utils.response import create_error_response
from api.middleware import setup_middleware
from db.manager import DatabaseManager, IN_MEMORY
from db.schema import initialize_schema

from api.cart import cart_router
from api.coupons import coupons_router
from api.delivery import delivery_router
from api.orders import orders_router

setup_logging(config.config)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info(f"{config.get('restaurant.name')} 店面API服务启动中...")
    logger.info(f"环境: {config.env}")
    logger.info(f"调试模式: {config.get('app.debug', False)}")

    db_path = config.get_database_config()['path']
    if db_path != IN_MEMORY:
        with DatabaseManager(db_path) as db:
            initialize_schema(db)

    yield

    logger.info("店面API服务关闭中...")


app = FastAPI(
    title=config.config['app']['name'],
    version=config.config['app']['version'],
    description=config.config['app']['description'],
    debug=config.config['app']['debug'],
    lifespan=lifespan
)

setup_middleware(app, config.config)

app.include_router(cart_router)
app.include_router(coupons_router)
app.include_router(delivery_router)
app.include_router(orders_router)


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    return JSONResponse(status_code=exc.status_code, content=create_error_response(exc.detail))


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    logger.error(f"未处理的异常: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content=create_error_response("服务器内部错误"))


@app.get("/")
async def root():
    """根路径健康检查"""
    return {
        "message": f"{config.get('restaurant.name')} 店面API服务运行中",
        "version": config.config['app']['version'],
        "status": "healthy"
    }


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "version": config.config['app']['version'],
        "environment": config.env,
        "restaurant_status": config.get('restaurant.status', 'open')
    }


@app.get("/api/info")
async def api_info():
    """API信息端点"""
    return {
        "name": config.config['app']['name'],
        "version": config.config['app']['version'],
        "description": config.config['app']['description'],
        "environment": config.env,
        "endpoints": {
            "cart": "/api/cart",
            "coupons": "/api/coupons",
            "delivery": "/api/delivery",
            "orders": "/api/orders"
        }
    }


if __name__ == "__main__":
    import uvicorn

    server_config = config.config['server']

    uvicorn.run(
        "api.main:app",
        host=server_config.get('host', '127.0.0.1'),
        port=server_config.get('port', 8000),
        reload=server_config.get('reload', False),
        workers=1 if server_config.get('reload', False) else server_config.get('workers', 1),
        log_level="debug" if config.config['app']['debug'] else "info"
    )
