"""配置与异常体系测试"""

from __future__ import annotations

from pathlib import Path

import pytest

import wpstack.core.config as cfgmod
from wpstack.core.config import Config, get_config, init_config
from wpstack.core.exceptions import (
    AbortedError,
    CommandTimeoutError,
    ConfigError,
    ExecutionError,
    PreconditionError,
    SiteExistsError,
    StepError,
    ValidationError,
    WpStackError,
)


class TestConfig:
    def test_defaults(self) -> None:
        cfg = Config()
        assert cfg.min_free_kb == 2_000_000
        assert cfg.expected_os_id == "Ubuntu"
        assert cfg.php_fpm_service == "php8.3-fpm"
        assert cfg.php_socket == "/var/run/php/php8.3-fpm.sock"
        assert "cockpit" in cfg.packages
        assert cfg.show_password is False

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert Config.from_file(str(tmp_path / "none.yml")) == Config()

    def test_from_file_with_extra(self, tmp_path: Path) -> None:
        f = tmp_path / "c.yml"
        f.write_text("php_version: '8.2'\npanel_port: 9443\nteam: ops\n", encoding="utf-8")
        cfg = Config.from_file(str(f))
        assert cfg.php_fpm_service == "php8.2-fpm"
        assert cfg.panel_port == 9443
        assert cfg.extra == {"team": "ops"}

    @pytest.mark.parametrize("value", [0, 1_999_999])
    def test_threshold_below_floor(self, tmp_path: Path, value: int) -> None:
        f = tmp_path / "c.yml"
        f.write_text(f"min_free_kb: {value}\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="2000000"):
            Config.from_file(str(f))

    def test_threshold_at_floor_and_above(self, tmp_path: Path) -> None:
        f = tmp_path / "c.yml"
        f.write_text("min_free_kb: 2000000\n", encoding="utf-8")
        assert Config.from_file(str(f)).min_free_kb == 2_000_000
        f.write_text("min_free_kb: 5000000\n", encoding="utf-8")
        assert Config.from_file(str(f)).min_free_kb == 5_000_000

    def test_init_and_get(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cfgmod, "_current", None)
        f = tmp_path / "c.yml"
        f.write_text("web_root: /srv/www\n", encoding="utf-8")
        init_config(str(f))
        assert get_config().web_root == "/srv/www"

    def test_packages_not_shared_between_instances(self) -> None:
        a, b = Config(), Config()
        a.packages.append("redis-server")
        assert "redis-server" not in b.packages


class TestExceptions:
    @pytest.mark.parametrize("cls", [
        ConfigError, ValidationError, PreconditionError, ExecutionError,
        CommandTimeoutError, StepError, SiteExistsError, AbortedError,
    ])
    def test_hierarchy(self, cls: type) -> None:
        assert issubclass(cls, WpStackError)

    def test_timeout_is_execution_error(self) -> None:
        assert issubclass(CommandTimeoutError, ExecutionError)
        assert CommandTimeoutError("x").code == "TIMEOUT"

    def test_details_and_fields(self) -> None:
        assert ValidationError("bad", details=["db_password"]).details == ["db_password"]
        assert PreconditionError("x", check="disk").check == "disk"
        assert StepError("x", step="deploy_cms").step == "deploy_cms"
