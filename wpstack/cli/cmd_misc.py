"""CLI 辅助命令：check, plan"""

from __future__ import annotations

import click

from wpstack.cli import _container, _fail, _setup_logging
from wpstack.core.exceptions import WpStackError
from wpstack.core.inputs import normalize_domain
from wpstack.core.models import ProvisioningRequest
from wpstack.services.orchestrator import Provisioner


def register(group: click.Group) -> None:
    group.add_command(check)
    group.add_command(plan)


@click.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """只执行前置检查（操作系统 / 磁盘 / 网络 / 权限）"""
    _setup_logging()
    results = _container(ctx).preconditions.evaluate()
    for r in results:
        mark = "OK" if r.passed else "FAIL"
        click.echo(f"  [{mark:4s}] {r.name}" + (f"  {r.reason}" if r.reason else ""))
    if not results[-1].passed:
        ctx.exit(1)
    click.echo("前置检查全部通过")


@click.command()
@click.argument("variant", default="install", type=click.Choice(["install", "add-site"]))
@click.option("--domain", default="example.com", help="add-site 变体使用的域名")
@click.pass_context
def plan(ctx: click.Context, variant: str, domain: str) -> None:
    """打印流水线声明的步骤顺序与依赖（不执行）"""
    provisioner = Provisioner(_container(ctx))
    if variant == "install":
        runner = provisioner.install_runner()
    else:
        try:
            ascii_domain, display = normalize_domain(domain)
        except WpStackError as e:
            raise _fail(e) from e
        request = ProvisioningRequest(
            domain=ascii_domain, display_domain=display,
            db_name="-", db_user="-", db_password="-", admin_email="-",
        )
        runner = provisioner.add_site_runner(request)
    click.echo(f"流水线: {runner.name}")
    for i, (name, requires, desc) in enumerate(runner.describe(), 1):
        deps = ", ".join(requires) if requires else "-"
        click.echo(f"  {i:2d}. {name:32s} 依赖: {deps:40s} {desc}")
