"""nginx 虚拟主机适配器

配置文件写入 sites-available，通过 sites-enabled 下的符号链接启用；
写入后先执行 nginx -t 校验，校验通过才 reload。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from wpstack.core.config import Config
from wpstack.core.exceptions import ExecutionError
from wpstack.services.systemd import ServiceManager
from wpstack.utils.shell import CommandExecutor
from wpstack.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

VHOST_TEMPLATE = """\
server {{
    listen 80;
    server_name {server_name};

    root {root};
    index index.php index.html index.htm;

    location / {{
        try_files $uri $uri/ /index.php?$args;
    }}

    location ~ \\.php$ {{
        include snippets/fastcgi-php.conf;
        fastcgi_pass unix:{php_socket};
        fastcgi_param SCRIPT_FILENAME $document_root$fastcgi_script_name;
        include fastcgi_params;
    }}

    location ~* \\.(js|css|png|jpg|jpeg|gif|ico|svg|woff|woff2|ttf|eot)$ {{
        expires max;
        log_not_found off;
    }}
}}
"""


def render_virtual_host(server_name: str, root: str, php_socket: str) -> str:
    return VHOST_TEMPLATE.format(
        server_name=server_name, root=root, php_socket=php_socket,
    )


class NginxService:
    """虚拟主机的写入、启用、校验与重载"""

    def __init__(
        self, executor: CommandExecutor, config: Config,
        services: ServiceManager | None = None,
    ) -> None:
        self.executor = executor
        self.config = config
        self.services = services or ServiceManager(executor)
        self.available_dir = Path(config.nginx_available_dir)
        self.enabled_dir = Path(config.nginx_enabled_dir)

    def write_virtual_host(self, vhost_id: str, server_name: str, root: str) -> str:
        text = render_virtual_host(server_name, root, self.config.php_socket)
        atomic_write(self.available_dir / vhost_id, text, mode=0o644)
        logger.info("虚拟主机已写入: %s", self.available_dir / vhost_id)
        return text

    def enable(self, vhost_id: str) -> None:
        link = self.enabled_dir / vhost_id
        target = self.available_dir / vhost_id
        self.enabled_dir.mkdir(parents=True, exist_ok=True)
        if link.is_symlink() or link.exists():
            if link.is_symlink() and link.resolve() == target.resolve():
                return
            link.unlink()
        link.symlink_to(target)

    def disable_default(self) -> None:
        default = self.enabled_dir / "default"
        if default.is_symlink() or default.exists():
            default.unlink()
            logger.info("已停用默认站点")

    def validate_config(self) -> bool:
        r = self.executor.execute(["nginx", "-t"])
        if not r.success:
            logger.error("nginx 配置校验失败: %s", r.stderr.strip()[:500])
        return r.success

    def reload(self) -> None:
        self.services.reload("nginx")

    def configure(
        self, vhost_id: str, server_name: str, root: str,
        disable_default: bool = False,
    ) -> None:
        """写入并启用虚拟主机，校验通过后重载"""
        self.write_virtual_host(vhost_id, server_name, root)
        self.enable(vhost_id)
        if disable_default:
            self.disable_default()
        if not self.validate_config():
            raise ExecutionError("nginx 配置校验失败，请检查配置")
        self.reload()
        logger.info("nginx 已为 %s 完成配置并重载", server_name)

    def remove_all_sites(self) -> int:
        """删除 sites-available 与 sites-enabled 下的全部条目"""
        removed = 0
        for directory in (self.enabled_dir, self.available_dir):
            if not directory.is_dir():
                continue
            for entry in directory.iterdir():
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
                removed += 1
        return removed
