"""MySQL 数据库适配器

所有语句均为幂等形式（IF NOT EXISTS / IF EXISTS），重复运行安全。
SQL 通过 stdin 交给 mysql 客户端，密码不会出现在进程参数或日志中。
"""

from __future__ import annotations

import logging

from wpstack.core.exceptions import ValidationError
from wpstack.core.models import ProvisioningRequest
from wpstack.utils.shell import CommandExecutor, run_cmd

logger = logging.getLogger(__name__)


def quote_ident(name: str) -> str:
    if "`" in name:
        raise ValidationError(f"非法标识符: {name!r}")
    return f"`{name}`"


def quote_literal(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


class MySQLService:
    """数据库与账号管理"""

    def __init__(self, executor: CommandExecutor, host: str = "localhost") -> None:
        self.executor = executor
        self.host = host

    def _account(self, user: str) -> str:
        return f"{quote_literal(user)}@{quote_literal(self.host)}"

    def execute_sql(self, sql: str, label: str = "mysql") -> None:
        run_cmd(self.executor, ["mysql"], label=label, input_text=sql)

    def create_database(self, name: str) -> None:
        self.execute_sql(
            f"CREATE DATABASE IF NOT EXISTS {quote_ident(name)} "
            "DEFAULT CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;",
            label=f"create database {name}",
        )

    def create_user(self, user: str, password: str) -> None:
        account = self._account(user)
        secret = quote_literal(password)
        # 已存在的账号同步为本次输入的密码
        self.execute_sql(
            f"CREATE USER IF NOT EXISTS {account} IDENTIFIED BY {secret};\n"
            f"ALTER USER {account} IDENTIFIED BY {secret};",
            label=f"create user {user}",
        )

    def grant(self, user: str, database: str) -> None:
        self.execute_sql(
            f"GRANT ALL PRIVILEGES ON {quote_ident(database)}.* TO {self._account(user)};\n"
            "FLUSH PRIVILEGES;",
            label=f"grant {user}",
        )

    def drop_database(self, name: str) -> None:
        self.execute_sql(
            f"DROP DATABASE IF EXISTS {quote_ident(name)};",
            label=f"drop database {name}",
        )

    def drop_user(self, user: str) -> None:
        self.execute_sql(
            f"DROP USER IF EXISTS {self._account(user)};",
            label=f"drop user {user}",
        )

    def provision(self, request: ProvisioningRequest) -> None:
        """创建数据库、账号并授权"""
        self.create_database(request.db_name)
        self.create_user(request.db_user, request.db_password)
        self.grant(request.db_user, request.db_name)
        logger.info("数据库已就绪: %s (user=%s)", request.db_name, request.db_user)
