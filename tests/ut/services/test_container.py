"""ServiceContainer 测试"""

from __future__ import annotations

import wpstack.core.config as cfgmod
from wpstack.core.config import Config
from wpstack.services.container import ServiceContainer
from wpstack.utils.shell import LocalExecutor


class TestServiceContainer:
    def test_lazy_singletons(self, container) -> None:
        assert container.database is container.database
        assert container.cms is container.cms

    def test_shared_executor_and_service_manager(self, container, fake_executor) -> None:
        assert container.executor is fake_executor
        assert container.webserver.services is container.services
        assert container.certificates.services is container.services
        assert container.intrusion.services is container.services

    def test_default_executor_uses_step_timeout(self) -> None:
        c = ServiceContainer(config=Config(step_timeout=42))
        assert isinstance(c.executor, LocalExecutor)
        assert c.executor.default_timeout == 42

    def test_falls_back_to_global_config(self, monkeypatch) -> None:
        cfg = Config(web_root="/srv/www")
        monkeypatch.setattr(cfgmod, "_current", cfg)
        assert ServiceContainer().config is cfg

    def test_registry_uses_config(self, container, config) -> None:
        assert str(container.sites.registry_file) == config.registry_file
