"""服务容器：统一依赖注入

所有外部系统适配器通过容器获取，同一容器内共享同一个命令执行器。
测试时注入记录型执行器，即可在不触碰系统的情况下跑完整条流水线。

用法:
    container = ServiceContainer(config=cfg)
    container.database.provision(request)

    # 注入执行器（测试 / 远程执行）
    container = ServiceContainer(config=cfg, executor=FakeExecutor())
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from wpstack.utils.shell import CommandExecutor, LocalExecutor

if TYPE_CHECKING:
    from wpstack.core.config import Config
    from wpstack.core.preconditions import HostProbe, PreconditionChecker
    from wpstack.core.sites import SiteRegistry
    from wpstack.services.certificates import CertbotClient
    from wpstack.services.cms import WordPressInstaller
    from wpstack.services.database import MySQLService
    from wpstack.services.packages import AptPackageManager
    from wpstack.services.security import ClamAVService, Fail2banService, UfwFirewall
    from wpstack.services.systemd import ServiceManager
    from wpstack.services.webserver import NginxService


class ServiceContainer:
    """懒加载服务容器，每个实例持有一组共享的适配器"""

    def __init__(
        self,
        config: Config | None = None,
        executor: CommandExecutor | None = None,
        probe: HostProbe | None = None,
    ) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from wpstack.core.config import get_config
            config = get_config()
        self._config = config
        self.executor: CommandExecutor = executor or LocalExecutor(
            default_timeout=config.step_timeout,
        )
        self._probe = probe

    @property
    def config(self) -> Config:
        return self._config

    # ---- 核心组件 ----

    @property
    def preconditions(self) -> PreconditionChecker:
        if "preconditions" not in self._instances:
            from wpstack.core.preconditions import PreconditionChecker
            self._instances["preconditions"] = PreconditionChecker(
                self._config, probe=self._probe,
            )
        return self._instances["preconditions"]  # type: ignore[return-value]

    @property
    def sites(self) -> SiteRegistry:
        if "sites" not in self._instances:
            from wpstack.core.sites import SiteRegistry
            self._instances["sites"] = SiteRegistry(
                self._config.registry_file, config=self._config,
            )
        return self._instances["sites"]  # type: ignore[return-value]

    # ---- 外部系统适配器 ----

    @property
    def services(self) -> ServiceManager:
        if "services" not in self._instances:
            from wpstack.services.systemd import ServiceManager
            self._instances["services"] = ServiceManager(self.executor)
        return self._instances["services"]  # type: ignore[return-value]

    @property
    def packages(self) -> AptPackageManager:
        if "packages" not in self._instances:
            from wpstack.services.packages import AptPackageManager
            self._instances["packages"] = AptPackageManager(self.executor)
        return self._instances["packages"]  # type: ignore[return-value]

    @property
    def database(self) -> MySQLService:
        if "database" not in self._instances:
            from wpstack.services.database import MySQLService
            self._instances["database"] = MySQLService(self.executor)
        return self._instances["database"]  # type: ignore[return-value]

    @property
    def webserver(self) -> NginxService:
        if "webserver" not in self._instances:
            from wpstack.services.webserver import NginxService
            self._instances["webserver"] = NginxService(
                self.executor, self._config, services=self.services,
            )
        return self._instances["webserver"]  # type: ignore[return-value]

    @property
    def certificates(self) -> CertbotClient:
        if "certificates" not in self._instances:
            from wpstack.services.certificates import CertbotClient
            self._instances["certificates"] = CertbotClient(
                self.executor, services=self.services,
            )
        return self._instances["certificates"]  # type: ignore[return-value]

    @property
    def firewall(self) -> UfwFirewall:
        if "firewall" not in self._instances:
            from wpstack.services.security import UfwFirewall
            self._instances["firewall"] = UfwFirewall(self.executor)
        return self._instances["firewall"]  # type: ignore[return-value]

    @property
    def intrusion(self) -> Fail2banService:
        if "intrusion" not in self._instances:
            from wpstack.services.security import Fail2banService
            self._instances["intrusion"] = Fail2banService(
                self.executor, self._config.fail2ban_jail_file,
                services=self.services,
            )
        return self._instances["intrusion"]  # type: ignore[return-value]

    @property
    def antivirus(self) -> ClamAVService:
        if "antivirus" not in self._instances:
            from wpstack.services.security import ClamAVService
            self._instances["antivirus"] = ClamAVService(
                self.executor, services=self.services,
            )
        return self._instances["antivirus"]  # type: ignore[return-value]

    @property
    def cms(self) -> WordPressInstaller:
        if "cms" not in self._instances:
            from wpstack.services.cms import WordPressInstaller
            self._instances["cms"] = WordPressInstaller(self.executor, self._config)
        return self._instances["cms"]  # type: ignore[return-value]
