# 数据库连接和事务管理
# SQLite连接、串行事务和上下文管理

import sqlite3
import logging
import os
from typing import List, Dict, Any
from contextlib import contextmanager

IN_MEMORY = ":memory:"

# 完整性检查覆盖的核心表
CORE_TABLES = ['coupons', 'delivery_settings', 'orders', 'cart_sessions']


class DatabaseManager:
    """
    数据库管理器

    负责SQLite数据库连接管理、事务处理和基础操作。
    各 *_operations 类共享同一个管理器实例。
    """

    def __init__(self, db_path: str, auto_connect: bool = False):
        """
        Args:
            db_path: 数据库文件路径，':memory:' 表示内存数据库（测试用）
            auto_connect: 是否在构造时立即连接
        """
        self.db_path = db_path
        self.conn = None
        self._is_connected = False
        self.logger = logging.getLogger(self.__class__.__name__)

        if auto_connect:
            self.connect()

    @property
    def is_memory(self) -> bool:
        return self.db_path == IN_MEMORY

    def connect(self) -> sqlite3.Connection:
        """
        建立数据库连接

        Raises:
            ConnectionError: 连接失败
        """
        if self.conn is not None:
            self.logger.warning("数据库连接已存在，先关闭现有连接")
            self.close()

        try:
            if not self.is_memory:
                db_dir = os.path.dirname(self.db_path)
                if db_dir and not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)
                    self.logger.info(f"创建数据库目录: {db_dir}")

            # TestClient 在线程池中执行同步依赖，需关闭同线程检查
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self._is_connected = True
            self._configure_database()
            self.logger.info(f"成功连接到数据库: {self.db_path}")
            return self.conn

        except sqlite3.Error as e:
            self.logger.error(f"连接数据库失败: {str(e)}")
            raise ConnectionError(f"无法连接到数据库 {self.db_path}: {str(e)}")

    def close(self):
        if self.conn is None:
            return
        try:
            self.conn.close()
            self.logger.info("数据库连接已关闭")
        except sqlite3.Error as e:
            self.logger.error(f"关闭数据库连接时发生错误: {str(e)}")
        finally:
            self.conn = None
            self._is_connected = False

    def _configure_database(self):
        pragmas = [
            "PRAGMA foreign_keys = ON",
            "PRAGMA synchronous = NORMAL",
            "PRAGMA temp_store = MEMORY",
        ]
        if not self.is_memory:
            pragmas.append("PRAGMA journal_mode = WAL")

        for pragma in pragmas:
            try:
                self.conn.execute(pragma)
            except sqlite3.Error as e:
                self.logger.warning(f"设置 {pragma} 失败: {str(e)}")

    def is_connected(self) -> bool:
        return self._is_connected and self.conn is not None

    def ensure_connected(self):
        """
        Raises:
            ConnectionError: 尚未调用 connect()
        """
        if not self.is_connected():
            raise ConnectionError("数据库未连接，请先调用connect()方法")

    def execute_single(self, query: str, params: List = None) -> sqlite3.Cursor:
        """
        执行单条SQL，写语句自动提交

        Returns:
            游标，可继续 fetchone()/fetchall() 或读取 lastrowid/rowcount
        """
        self.ensure_connected()

        try:
            cursor = self.conn.execute(query, params or [])
            if query.lstrip().upper().startswith(('CREATE', 'DROP', 'ALTER', 'INSERT', 'UPDATE', 'DELETE')):
                self.conn.commit()
            return cursor

        except sqlite3.Error as e:
            self.logger.error(f"执行SQL失败: {query.strip()[:100]}..., 错误: {str(e)}")
            raise

    @contextmanager
    def transaction(self):
        """
        事务上下文管理器

        Usage:
            with db_manager.transaction() as conn:
                conn.execute("UPDATE coupons SET ...")
        """
        self.ensure_connected()

        try:
            yield self.conn
            self.conn.commit()
        except Exception as e:
            self.logger.error(f"事务执行失败，回滚: {str(e)}")
            try:
                self.conn.rollback()
            except sqlite3.Error as rollback_error:
                self.logger.error(f"事务回滚失败: {str(rollback_error)}")
            raise

    def get_table_info(self, table_name: str) -> Dict[str, Any]:
        """
        获取数据表的列定义和记录数

        Raises:
            ValueError: 表不存在
        """
        self.ensure_connected()

        columns = self.conn.execute(f"PRAGMA table_info('{table_name}')").fetchall()
        if not columns:
            raise ValueError(f"表 {table_name} 不存在")

        record_count = self.conn.execute(f"SELECT COUNT(*) FROM {table_name}").fetchone()[0]

        return {
            'table_name': table_name,
            'columns': [
                {
                    'name': col[1],
                    'type': col[2],
                    'not_null': bool(col[3]),
                    'default_value': col[4],
                    'primary_key': bool(col[5]),
                }
                for col in columns
            ],
            'record_count': record_count,
        }

    def check_integrity(self):
        """
        检查数据库完整性：核心表是否存在、SQLite自检是否通过、业务唯一键是否重复
        """
        self.ensure_connected()

        try:
            self.logger.info("开始数据库完整性检查")

            for table in CORE_TABLES:
                result = self.conn.execute("""
                    SELECT COUNT(*) FROM sqlite_master
                    WHERE type='table' AND name=?
                """, (table,)).fetchone()

                if not result or result[0] == 0:
                    raise RuntimeError(f"核心表 {table} 不存在")

            integrity_issues = []

            sqlite_check = self.conn.execute("PRAGMA integrity_check").fetchone()
            if sqlite_check and sqlite_check[0] != 'ok':
                integrity_issues.append(f"SQLite自检失败: {sqlite_check[0]}")

            duplicate_codes = self.conn.execute("""
                SELECT code, COUNT(*) as count
                FROM coupons
                GROUP BY UPPER(code)
                HAVING COUNT(*) > 1
            """).fetchall()
            integrity_issues.extend([f"coupons表存在重复的code: {row[0]} (出现{row[1]}次)" for row in duplicate_codes])

            duplicate_orders = self.conn.execute("""
                SELECT order_code, COUNT(*) as count
                FROM orders
                GROUP BY order_code
                HAVING COUNT(*) > 1
            """).fetchall()
            integrity_issues.extend([f"orders表存在重复的order_code: {row[0]} (出现{row[1]}次)" for row in duplicate_orders])

            active_settings = self.conn.execute(
                "SELECT COUNT(*) FROM delivery_settings WHERE is_active = 1"
            ).fetchone()
            if active_settings and active_settings[0] > 1:
                integrity_issues.append(f"delivery_settings表存在 {active_settings[0]} 条启用记录")

            if integrity_issues:
                error_msg = "数据库完整性检查发现问题:\n" + "\n".join(integrity_issues)
                self.logger.error(error_msg)
                raise RuntimeError(error_msg)

            self.logger.info("数据库完整性检查通过")

        except Exception as e:
            self.logger.error(f"数据库完整性检查失败: {str(e)}")
            raise e

    def __enter__(self):
        if not self.is_connected():
            self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        # 析构时确保连接被关闭
        if self.is_connected():
            self.close()
