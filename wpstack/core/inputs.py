"""部署参数收集

一次性收集并校验全部用户输入，生成不可变的 ProvisioningRequest：
  - 已通过命令行提供的值直接使用，缺失的才交互提问
  - 空输入采用默认值；数据库密码没有默认值，空值直接报错
  - 非 ASCII 域名转换为 Punycode，原始形式仅用于展示与邮箱
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable

import click
import idna

from wpstack.core.exceptions import ValidationError
from wpstack.core.models import ProvisioningRequest

logger = logging.getLogger(__name__)

_ASCII_DOMAIN = re.compile(r"^[A-Za-z0-9.-]+$")
_SQL_IDENT = re.compile(r"^[A-Za-z0-9_]{1,64}$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+$")

# prompt(text, default, secret) -> str
PromptFunc = Callable[[str, str, bool], str]


def click_prompt(text: str, default: str, secret: bool) -> str:
    """基于 click 的交互提问，空输入返回 default"""
    value = click.prompt(
        text, default=default, show_default=bool(default),
        hide_input=secret,
    )
    return str(value)


def normalize_domain(raw: str) -> tuple[str, str]:
    """返回 (ASCII/Punycode 域名, 展示用域名)

    >>> normalize_domain("тест.site")
    ('xn--e1aybc.site', 'тест.site')
    """
    display = raw.strip().rstrip(".")
    if not display:
        raise ValidationError("域名不能为空")
    if _ASCII_DOMAIN.match(display):
        ascii_form = display.lower()
    else:
        try:
            ascii_form = idna.encode(display, uts46=True).decode("ascii")
        except idna.IDNAError as e:
            raise ValidationError(f"无法转换为 Punycode: {display} ({e})") from e
        logger.info("检测到非 ASCII 域名，Punycode: %s", ascii_form)
    labels = ascii_form.split(".")
    bad = [lb for lb in labels if not lb or lb.startswith("-") or lb.endswith("-")]
    if bad:
        raise ValidationError(f"域名格式无效: {display}", details=bad)
    return ascii_form, display


@dataclass(frozen=True)
class InputDefaults:
    """某个部署变体的默认值"""

    domain: str = "example.com"
    db_name: str = "wordpress_db"
    db_user: str = "wordpress_user"
    admin_email: str = ""  # 为空时取 admin@<域名>


INSTALL_DEFAULTS = InputDefaults()
ADD_SITE_DEFAULTS = InputDefaults(
    db_name="wordpress_new", db_user="wp_user_new",
    admin_email="admin@example.com",
)


class InputCollector:
    """参数收集器

    interactive=False 时从不提问：缺失值取默认，缺失密码直接报错。
    """

    def __init__(
        self, prompt: PromptFunc | None = None, interactive: bool = True,
    ) -> None:
        self.prompt = prompt or click_prompt
        self.interactive = interactive

    def _ask(
        self, provided: str | None, text: str, default: str,
        secret: bool = False,
    ) -> str:
        if provided:
            return provided if secret else provided.strip()
        if not self.interactive:
            return default
        value = self.prompt(text, default, secret)
        if not secret:
            value = value.strip()
        return value or default

    def collect(
        self,
        defaults: InputDefaults = INSTALL_DEFAULTS,
        *,
        domain: str | None = None,
        db_name: str | None = None,
        db_user: str | None = None,
        db_password: str | None = None,
        admin_email: str | None = None,
        clean_install: bool = False,
    ) -> ProvisioningRequest:
        logger.info("收集部署参数...")
        raw_domain = self._ask(
            domain, "网站域名 (如 perfectfont.site)", defaults.domain,
        )
        ascii_domain, display_domain = normalize_domain(raw_domain)

        name = self._ask(db_name, "WordPress 数据库名", defaults.db_name)
        user = self._ask(db_user, "数据库用户名", defaults.db_user)
        for label, value in (("数据库名", name), ("数据库用户名", user)):
            if not _SQL_IDENT.match(value):
                raise ValidationError(
                    f"{label}只能包含字母、数字和下划线: {value!r}",
                )

        password = self._ask(db_password, "数据库密码", "", secret=True)
        if not password:
            logger.error("数据库密码不能为空")
            raise ValidationError("数据库密码不能为空", details=["db_password"])

        email_default = defaults.admin_email or f"admin@{display_domain}"
        email = self._ask(admin_email, "管理员邮箱", email_default)
        if not _EMAIL.match(email):
            raise ValidationError(f"管理员邮箱格式无效: {email!r}")

        request = ProvisioningRequest(
            domain=ascii_domain,
            display_domain=display_domain,
            db_name=name,
            db_user=user,
            db_password=password,
            admin_email=email,
            clean_install=clean_install,
        )
        logger.info(
            "参数收集完成: domain=%s db=%s user=%s",
            request.domain, request.db_name, request.db_user,
        )
        return request
