"""CLI 站点注册表查询"""

from __future__ import annotations

import click

from wpstack.cli import _container


def register(group: click.Group) -> None:
    group.add_command(sites)


@click.command()
@click.pass_context
def sites(ctx: click.Context) -> None:
    """列出已登记的站点"""
    records = _container(ctx).sites.list_all()
    if not records:
        click.echo("没有已登记的站点。")
        return
    for r in records:
        shown = r.domain if r.domain == r.display_domain else f"{r.domain} ({r.display_domain})"
        state = "  [未完成]" if r.pending else ""
        click.echo(f"  {shown:40s} root={r.root} db={r.db_name} user={r.db_user}{state}")
