"""WordPress 安装适配器

职责:
- 下载并解压 WordPress（可平铺到站点根目录）
- 设置文件属主与权限
- 生成 wp-config.php
- 确保 WP-CLI 可用，并通过 WP-CLI 完成站点初始化
"""

from __future__ import annotations

import logging
import secrets
import shutil
import string
from pathlib import Path

from wpstack.core.config import Config
from wpstack.core.models import ProvisioningRequest
from wpstack.utils.shell import CommandExecutor, check_cmd, run_cmd
from wpstack.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

_SALT_KEYS = (
    "AUTH_KEY", "SECURE_AUTH_KEY", "LOGGED_IN_KEY", "NONCE_KEY",
    "AUTH_SALT", "SECURE_AUTH_SALT", "LOGGED_IN_SALT", "NONCE_SALT",
)
_SALT_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*()-_[]{}<>~+=,.;:/?|"


def _php_str(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def render_wp_config(request: ProvisioningRequest, db_host: str = "localhost") -> str:
    """生成 wp-config.php 内容（每次调用生成新的密钥盐值）"""
    lines = [
        "<?php",
        f"define( 'DB_NAME', {_php_str(request.db_name)} );",
        f"define( 'DB_USER', {_php_str(request.db_user)} );",
        f"define( 'DB_PASSWORD', {_php_str(request.db_password)} );",
        f"define( 'DB_HOST', {_php_str(db_host)} );",
        "define( 'DB_CHARSET', 'utf8' );",
        "define( 'DB_COLLATE', '' );",
    ]
    for key in _SALT_KEYS:
        salt = "".join(secrets.choice(_SALT_ALPHABET) for _ in range(64))
        lines.append(f"define( '{key}', {_php_str(salt)} );")
    lines += [
        "$table_prefix = 'wp_';",
        "define( 'WP_DEBUG', false );",
        "if ( ! defined( 'ABSPATH' ) ) {",
        "    define( 'ABSPATH', __DIR__ . '/' );",
        "}",
        "require_once ABSPATH . 'wp-settings.php';",
        "",
    ]
    return "\n".join(lines)


class WordPressInstaller:
    def __init__(self, executor: CommandExecutor, config: Config) -> None:
        self.executor = executor
        self.config = config

    @property
    def owner(self) -> str:
        return f"{self.config.web_user}:{self.config.web_user}"

    def download(self) -> Path:
        archive = Path(self.config.cms_archive)
        run_cmd(
            self.executor,
            ["wget", "-q", self.config.cms_download_url, "-O", str(archive)],
            label="下载 WordPress",
        )
        return archive

    def fetch(self, dest: str, flatten: bool = False) -> None:
        """下载并解压到 dest

        flatten=False: 解压到 dest 的父目录，得到 <parent>/wordpress
        flatten=True:  解压到 dest 后把 wordpress/ 下的内容上移到 dest
        """
        target = Path(dest)
        archive = self.download()
        extract_to = target if flatten else target.parent
        extract_to.mkdir(parents=True, exist_ok=True)
        run_cmd(
            self.executor,
            ["unzip", "-oq", str(archive), "-d", str(extract_to)],
            label="解压 WordPress",
        )
        if flatten:
            self._flatten(target)
        logger.info("WordPress 已解压到 %s", target)

    @staticmethod
    def _flatten(target: Path) -> None:
        nested = target / "wordpress"
        if not nested.is_dir():
            return
        for item in nested.iterdir():
            dest = target / item.name
            if dest.is_dir() and not dest.is_symlink():
                shutil.rmtree(dest)
            elif dest.exists() or dest.is_symlink():
                dest.unlink()
            shutil.move(str(item), str(dest))
        nested.rmdir()

    def set_permissions(self, dest: str) -> None:
        run_cmd(self.executor, ["chown", "-R", self.owner, dest], label="chown")
        run_cmd(self.executor, ["chmod", "-R", "755", dest], label="chmod")

    def write_config(self, dest: str, request: ProvisioningRequest) -> bool:
        """写入 wp-config.php；已存在则保留（避免重置盐值），返回是否写入"""
        path = Path(dest) / "wp-config.php"
        if path.exists():
            logger.info("%s 已存在，保留现有配置", path)
            return False
        atomic_write(path, render_wp_config(request), mode=0o640)
        run_cmd(self.executor, ["chown", self.owner, str(path)], label="chown wp-config")
        logger.info("wp-config.php 已生成: %s", path)
        return True

    # ---- WP-CLI ----

    def has_cli(self) -> bool:
        return Path(self.config.wp_cli_path).exists() or check_cmd(
            self.executor, ["which", "wp"],
        )

    def ensure_cli(self) -> bool:
        """WP-CLI 不存在时下载安装，返回是否执行了安装"""
        if self.has_cli():
            logger.info("WP-CLI 已安装")
            return False
        logger.info("未找到 WP-CLI，正在安装...")
        run_cmd(
            self.executor,
            ["curl", "-fsSL", self.config.wp_cli_url, "-o", self.config.wp_cli_path],
            label="下载 WP-CLI",
        )
        run_cmd(
            self.executor, ["chmod", "+x", self.config.wp_cli_path],
            label="chmod WP-CLI",
        )
        logger.info("WP-CLI 安装完成")
        return True

    def _wp(self, *args: str) -> list[str]:
        return ["sudo", "-u", self.config.web_user, self.config.wp_cli_path, *args]

    def is_installed(self, path: str) -> bool:
        return check_cmd(self.executor, self._wp("core", "is-installed", f"--path={path}"))

    def core_install(
        self, url: str, title: str, admin_user: str,
        admin_password: str, admin_email: str, path: str,
    ) -> bool:
        """执行 wp core install；站点已初始化时跳过，返回是否执行了安装

        管理员密码通过 --prompt 从 stdin 读取，不出现在进程参数中。
        """
        if self.is_installed(path):
            logger.info("WordPress 已初始化，跳过: %s", path)
            return False
        run_cmd(
            self.executor,
            self._wp(
                "core", "install",
                f"--url={url}", f"--title={title}",
                f"--admin_user={admin_user}", f"--admin_email={admin_email}",
                f"--path={path}", "--prompt=admin_password",
            ),
            label="wp core install",
            input_text=admin_password + "\n",
        )
        logger.info("WordPress 初始化完成: %s", url)
        return True
