"""CLI 部署命令：install, add-site"""

from __future__ import annotations

from typing import Any

import click

from wpstack.cli import _config, _container, _fail, _setup_logging
from wpstack.core.exceptions import WpStackError
from wpstack.core.inputs import ADD_SITE_DEFAULTS, INSTALL_DEFAULTS, InputCollector
from wpstack.core.reporter import render_summary
from wpstack.services.orchestrator import Provisioner


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(add_site)


def _request_options(f: Any) -> Any:
    options = [
        click.option("--domain", default=None, help="网站域名（支持中文/西里尔域名）"),
        click.option("--db-name", default=None, help="数据库名"),
        click.option("--db-user", default=None, help="数据库用户名"),
        click.option("--db-password", default=None, help="数据库密码（不提供则交互输入）"),
        click.option("--admin-email", default=None, help="管理员邮箱"),
        click.option("--no-input", is_flag=True, help="不交互提问，缺失项使用默认值"),
        click.option(
            "--format", "-f", "fmt", default="text",
            type=click.Choice(["text", "json"]), help="汇总输出格式",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _confirm(assume_yes: bool, interactive: bool) -> Any:
    if assume_yes:
        return lambda _prompt: True
    if not interactive:
        return lambda _prompt: False
    return lambda prompt: click.confirm(prompt, default=False)


@click.command()
@_request_options
@click.option("--clean/--no-clean", default=False, help="部署前清空已有站点与数据库")
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="跳过全新安装确认")
@click.pass_context
def install(ctx: click.Context, **kwargs: Any) -> None:
    """在全新服务器上部署 WordPress 全栈"""
    cfg = _config(ctx)
    _setup_logging(cfg.log_file)
    interactive = not kwargs["no_input"]
    try:
        request = InputCollector(interactive=interactive).collect(
            INSTALL_DEFAULTS,
            domain=kwargs["domain"], db_name=kwargs["db_name"],
            db_user=kwargs["db_user"], db_password=kwargs["db_password"],
            admin_email=kwargs["admin_email"], clean_install=kwargs["clean"],
        )
        provisioner = Provisioner(
            _container(ctx), confirm=_confirm(kwargs["assume_yes"], interactive),
        )
        report = provisioner.install(request)
    except WpStackError as e:
        raise _fail(e) from e
    click.echo(render_summary(report.summary, kwargs["fmt"]))


@click.command(name="add-site")
@_request_options
@click.pass_context
def add_site(ctx: click.Context, **kwargs: Any) -> None:
    """在已部署的服务器上新增一个 WordPress 站点"""
    cfg = _config(ctx)
    _setup_logging(cfg.add_site_log_file)
    try:
        request = InputCollector(interactive=not kwargs["no_input"]).collect(
            ADD_SITE_DEFAULTS,
            domain=kwargs["domain"], db_name=kwargs["db_name"],
            db_user=kwargs["db_user"], db_password=kwargs["db_password"],
            admin_email=kwargs["admin_email"],
        )
        report = Provisioner(_container(ctx)).add_site(request)
    except WpStackError as e:
        raise _fail(e) from e
    click.echo(render_summary(report.summary, kwargs["fmt"]))
