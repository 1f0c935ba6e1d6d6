"""站点注册表与文件锁测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from wpstack.core.exceptions import ExecutionError, SiteExistsError, WpStackError
from wpstack.core.models import SiteRecord
from wpstack.core.sites import SiteRegistry, exclusive_lock


@pytest.fixture()
def registry(config) -> SiteRegistry:
    return SiteRegistry(config.registry_file, config=config)


class TestSiteRegistry:
    def test_plan_site_uses_punycode(self, registry, config, request_factory) -> None:
        req = request_factory(domain="xn--e1aybc.site", display_domain="тест.site")
        record = registry.plan_site(req)
        assert record.vhost_id == "xn--e1aybc.site"
        assert record.root == str(Path(config.web_root) / "xn--e1aybc.site")
        assert record.display_domain == "тест.site"

    def test_register_persists(self, registry, config, request_factory) -> None:
        registry.register(registry.plan_site(request_factory()))
        again = SiteRegistry(config.registry_file, config=config)
        assert again.exists("example.com")
        got = again.get("example.com")
        assert isinstance(got, SiteRecord)
        assert got.db_name == "wordpress_db"
        assert [r.domain for r in again.list_all()] == ["example.com"]

    def test_unicode_display_domain_roundtrip(self, registry, config, request_factory) -> None:
        req = request_factory(domain="xn--e1aybc.site", display_domain="тест.site")
        registry.register(registry.plan_site(req))
        text = Path(config.registry_file).read_text(encoding="utf-8")
        assert "тест.site" in text
        assert SiteRegistry(config.registry_file).get("xn--e1aybc.site").display_domain == "тест.site"

    def test_register_twice_rejected(self, registry, request_factory) -> None:
        record = registry.plan_site(request_factory())
        registry.register(record)
        with pytest.raises(SiteExistsError):
            registry.register(record)

    def test_ensure_available_registered_domain(self, registry, request_factory) -> None:
        registry.register(registry.plan_site(request_factory()))
        with pytest.raises(SiteExistsError, match="已登记"):
            registry.ensure_available(registry.plan_site(request_factory()))

    def test_ensure_available_db_in_use(self, registry, request_factory) -> None:
        registry.register(registry.plan_site(request_factory()))
        other = registry.plan_site(request_factory(domain="b.com", display_domain="b.com"))
        with pytest.raises(SiteExistsError, match="wordpress_db"):
            registry.ensure_available(other)

    def test_ensure_available_unregistered_dir_on_disk(self, registry, request_factory) -> None:
        record = registry.plan_site(request_factory())
        Path(record.root).mkdir(parents=True)
        with pytest.raises(SiteExistsError, match="拒绝覆盖"):
            registry.ensure_available(record)

    def test_ensure_available_vhost_on_disk(self, registry, config, request_factory) -> None:
        record = registry.plan_site(request_factory())
        vhost = Path(config.nginx_available_dir) / record.vhost_id
        vhost.parent.mkdir(parents=True)
        vhost.write_text("server {}", encoding="utf-8")
        with pytest.raises(SiteExistsError):
            registry.ensure_available(record)

    def test_ensure_available_fresh(self, registry, request_factory) -> None:
        registry.ensure_available(registry.plan_site(request_factory()))

    def test_remove(self, registry, request_factory) -> None:
        registry.register(registry.plan_site(request_factory()))
        assert registry.remove("example.com") is True
        assert registry.remove("example.com") is False

    def test_ensure_available_db_user_in_use(self, registry, request_factory) -> None:
        registry.register(registry.plan_site(request_factory(db_user="shared")))
        other = registry.plan_site(request_factory(
            domain="b.com", display_domain="b.com", db_name="b_db", db_user="shared",
        ))
        with pytest.raises(SiteExistsError, match="数据库用户 shared"):
            registry.ensure_available(other)

    def test_pending_record_claims_its_leftovers(self, registry, config, request_factory) -> None:
        record = registry.reserve(registry.plan_site(request_factory()))
        assert record.pending
        Path(record.root).mkdir(parents=True)
        vhost = Path(config.nginx_available_dir) / record.vhost_id
        vhost.parent.mkdir(parents=True)
        vhost.write_text("server {}", encoding="utf-8")

        registry.ensure_available(registry.plan_site(request_factory()))

    def test_pending_does_not_excuse_foreign_leftovers(self, registry, request_factory) -> None:
        registry.reserve(registry.plan_site(request_factory()))
        other = registry.plan_site(request_factory(
            domain="b.com", display_domain="b.com", db_name="b_db", db_user="b_user",
        ))
        Path(other.root).mkdir(parents=True)
        with pytest.raises(SiteExistsError, match="拒绝覆盖"):
            registry.ensure_available(other)

    def test_register_completes_pending(self, registry, request_factory) -> None:
        pending = registry.reserve(registry.plan_site(request_factory()))
        active = registry.register(registry.plan_site(request_factory()))
        assert not active.pending
        assert active.created_at == pending.created_at
        with pytest.raises(SiteExistsError):
            registry.reserve(registry.plan_site(request_factory()))

    def test_upsert_overwrites(self, registry, request_factory) -> None:
        first = registry.upsert(registry.plan_site(request_factory()))
        again = registry.upsert(registry.plan_site(request_factory(db_name="other_db")))
        assert again.created_at == first.created_at
        assert registry.get("example.com").db_name == "other_db"

    def test_clear(self, registry, config, request_factory) -> None:
        registry.register(registry.plan_site(request_factory()))
        registry.reserve(registry.plan_site(request_factory(domain="b.com", display_domain="b.com")))
        assert registry.clear() == 2
        assert SiteRegistry(config.registry_file, config=config).list_all() == []

    def test_reload_sees_other_writers(self, registry, config, request_factory) -> None:
        other = SiteRegistry(config.registry_file, config=config)
        other.register(other.plan_site(request_factory()))
        assert not registry.exists("example.com")
        registry.reload()
        assert registry.exists("example.com")


class TestExclusiveLock:
    def test_acquire_and_release(self, tmp_path: Path) -> None:
        lock = str(tmp_path / "run" / "x.lock")
        with exclusive_lock(lock):
            pass
        with exclusive_lock(lock, timeout=0.5):
            pass

    def test_second_holder_times_out(self, tmp_path: Path) -> None:
        lock = str(tmp_path / "x.lock")
        with exclusive_lock(lock):
            with pytest.raises(WpStackError, match="等待锁超时"):
                with exclusive_lock(lock, timeout=0.3):
                    pass

    def test_unwritable_lock_path(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(ExecutionError, match="无法打开锁文件"):
            with exclusive_lock(str(blocker / "x.lock")):
                pass
