"""wpstack 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
业务异常统一转换为 click 错误输出，退出码 1。
"""

from __future__ import annotations

import os
from typing import Any

import click

from wpstack import __version__
from wpstack.core.config import Config
from wpstack.core.exceptions import ConfigError, WpStackError
from wpstack.services.container import ServiceContainer
from wpstack.utils.logger import setup_logging

DEFAULT_CONFIG = "/etc/wpstack/config.yml"


def _config(ctx: click.Context) -> Config:
    obj: dict[str, Any] = ctx.ensure_object(dict)
    if "config" not in obj:
        try:
            obj["config"] = Config.from_file(obj.get("config_path", DEFAULT_CONFIG))
        except ConfigError as e:
            raise click.ClickException(str(e)) from e
    return obj["config"]


def _container(ctx: click.Context) -> ServiceContainer:
    """获取本次调用的服务容器（测试可预先放入 ctx.obj["container"]）"""
    obj: dict[str, Any] = ctx.ensure_object(dict)
    if "container" not in obj:
        obj["container"] = ServiceContainer(config=_config(ctx))
    return obj["container"]


def _setup_logging(log_file: str = "") -> None:
    try:
        setup_logging(
            level=os.getenv("WPSTACK_LOG_LEVEL", "INFO"),
            json_output=os.getenv("WPSTACK_LOG_JSON", "") == "1",
            log_file=log_file,
        )
    except ConfigError as e:
        raise _fail(e) from e


def _fail(e: WpStackError) -> click.ClickException:
    return click.ClickException(f"[{e.code}] {e}")


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "-c", "config_path", default=DEFAULT_CONFIG,
    show_default=True, help="配置文件路径",
)
@click.pass_context
def main(ctx: click.Context, config_path: str) -> None:
    """wpstack - WordPress 单机部署工具"""
    ctx.ensure_object(dict).setdefault("config_path", config_path)


# 注册各领域子命令
from wpstack.cli.cmd_install import register as _reg_install  # noqa: E402
from wpstack.cli.cmd_misc import register as _reg_misc  # noqa: E402
from wpstack.cli.cmd_sites import register as _reg_sites  # noqa: E402

_reg_install(main)
_reg_sites(main)
_reg_misc(main)
