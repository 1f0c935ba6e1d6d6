"""集中配置管理

替代散落的路径、版本号与阈值常量，提供统一的配置入口。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from wpstack.core.exceptions import ConfigError
from wpstack.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

# 磁盘空间阈值下限 (KB)
MIN_FREE_KB_FLOOR = 2_000_000

DEFAULT_PACKAGES = [
    "nginx", "mysql-server",
    "php8.3-fpm", "php8.3-mysql", "php8.3-curl", "php8.3-gd",
    "php8.3-mbstring", "php8.3-xml", "php8.3-zip",
    "unzip", "wget", "ufw", "fail2ban", "clamav", "clamav-daemon",
    "certbot", "python3-certbot-nginx", "cockpit",
]


@dataclass
class Config:
    """部署工具全局配置"""

    # 运行日志
    log_file: str = "/var/log/wordpress_setup.log"
    add_site_log_file: str = "/var/log/add_wordpress_site.log"

    # 前置检查
    expected_os_id: str = "Ubuntu"
    expected_os_version: str = "24.04"
    disk_path: str = "/"
    min_free_kb: int = MIN_FREE_KB_FLOOR
    network_probe_host: str = "google.com"
    network_probe_port: int = 80
    network_timeout: float = 5.0

    # 执行
    step_timeout: int = 1800  # 秒，单条外部命令上限

    # 软件栈
    php_version: str = "8.3"
    packages: list[str] = field(default_factory=lambda: list(DEFAULT_PACKAGES))
    web_root: str = "/var/www"
    main_site_id: str = "wordpress"
    nginx_available_dir: str = "/etc/nginx/sites-available"
    nginx_enabled_dir: str = "/etc/nginx/sites-enabled"
    fail2ban_jail_file: str = "/etc/fail2ban/jail.local"
    cms_download_url: str = "https://wordpress.org/latest.zip"
    cms_archive: str = "/tmp/wordpress.zip"
    wp_cli_url: str = (
        "https://raw.githubusercontent.com/wp-cli/builds/gh-pages/phar/wp-cli.phar"
    )
    wp_cli_path: str = "/usr/local/bin/wp"
    web_user: str = "www-data"
    firewall_web_rule: str = "Nginx Full"

    # 管理面板
    panel_service: str = "cockpit"
    panel_port: int = 9090

    # 报告
    show_password: bool = False

    # 站点注册表
    registry_file: str = "/var/lib/wpstack/sites.yml"
    lock_file: str = "/var/lock/wpstack.lock"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @property
    def php_fpm_service(self) -> str:
        return f"php{self.php_version}-fpm"

    @property
    def php_socket(self) -> str:
        return f"/var/run/php/php{self.php_version}-fpm.sock"

    @classmethod
    def from_file(cls, path: str = "/etc/wpstack/config.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except ValueError as e:
            raise ConfigError(str(e)) from e
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        if cfg.min_free_kb < MIN_FREE_KB_FLOOR:
            raise ConfigError(
                f"min_free_kb 不能低于 {MIN_FREE_KB_FLOOR} (2 GB): {cfg.min_free_kb}",
            )
        return cfg

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "/etc/wpstack/config.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.debug("配置已加载: %s", path)
    return _current
