"""站点注册表

以 Punycode 域名为键持久化已部署的站点，新增站点前检查：
  - 域名未登记（或仅有上次未完成的 pending 条目）
  - 数据库名与数据库用户未被其他站点使用
  - 站点目录与 nginx 虚拟主机文件在磁盘上不存在

部署运行通过独占文件锁串行化，
锁覆盖注册表读写与 nginx 配置目录的修改。
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
import time
from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path

from wpstack.core.config import Config
from wpstack.core.exceptions import ExecutionError, SiteExistsError, WpStackError
from wpstack.core.models import ProvisioningRequest, SiteRecord
from wpstack.core.registry import YamlRegistry

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def exclusive_lock(lock_file: str, timeout: float = 60.0) -> Iterator[None]:
    """获取独占文件锁，超时抛 WpStackError"""
    path = Path(lock_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = open(path, "a", encoding="utf-8")
    except OSError as e:
        raise ExecutionError(f"无法打开锁文件 {lock_file}: {e}") from e
    deadline = time.monotonic() + timeout
    with fh:
        while True:
            try:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    raise WpStackError(
                        f"等待锁超时 ({timeout}s): {lock_file}，可能有其他部署正在运行",
                    ) from None
                time.sleep(0.2)
        logger.debug("已获取锁: %s", lock_file)
        try:
            yield
        finally:
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


class SiteRegistry(YamlRegistry):
    """已部署站点注册表

    add-site 开始前写入 pending 条目，流水线全部成功后转为 active；
    失败后重跑同一域名时，pending 条目名下的目录与虚拟主机视为本站点遗留。
    """

    section_key = "sites"

    def __init__(self, registry_file: str, config: Config | None = None) -> None:
        super().__init__(registry_file)
        self.config = config or Config()

    def get(self, domain: str) -> SiteRecord | None:
        raw = self._get_raw(domain)
        return SiteRecord.from_dict(raw) if raw is not None else None

    def exists(self, domain: str) -> bool:
        return self._get_raw(domain) is not None

    def list_all(self) -> list[SiteRecord]:
        return [SiteRecord.from_dict(e) for e in self._list_raw()]

    def plan_site(self, request: ProvisioningRequest) -> SiteRecord:
        """根据请求推导新站点的目录与虚拟主机标识（不写入）"""
        return SiteRecord(
            domain=request.domain,
            display_domain=request.display_domain,
            root=str(Path(self.config.web_root) / request.domain),
            vhost_id=request.domain,
            db_name=request.db_name,
            db_user=request.db_user,
        )

    def _refuse_active(self, domain: str) -> SiteRecord | None:
        current = self.get(domain)
        if current is not None and not current.pending:
            raise SiteExistsError(f"站点已登记: {domain}", domain=domain)
        return current

    def ensure_available(self, record: SiteRecord) -> None:
        """检查站点资源不与已有站点冲突"""
        current = self._refuse_active(record.domain)
        for other in self.list_all():
            if other.domain == record.domain:
                continue
            if other.db_name == record.db_name:
                raise SiteExistsError(
                    f"数据库 {record.db_name} 已被站点 {other.domain} 使用",
                    domain=record.domain,
                )
            if other.db_user == record.db_user:
                raise SiteExistsError(
                    f"数据库用户 {record.db_user} 已被站点 {other.domain} 使用",
                    domain=record.domain,
                )
        if current is not None:
            logger.info("站点 %s 上次部署未完成，继续使用已有资源", record.domain)
            return
        vhost = Path(self.config.nginx_available_dir) / record.vhost_id
        for path in (Path(record.root), vhost):
            if path.exists():
                raise SiteExistsError(
                    f"{path} 已存在但域名未登记，拒绝覆盖", domain=record.domain,
                )

    def reserve(self, record: SiteRecord) -> SiteRecord:
        """部署开始前写入 pending 条目"""
        current = self._refuse_active(record.domain)
        pending = replace(
            record, status="pending",
            created_at=current.created_at if current else record.created_at,
        )
        self._put(record.domain, pending.to_dict())
        return pending

    def register(self, record: SiteRecord) -> SiteRecord:
        """登记为 active；已有 active 条目时拒绝"""
        current = self._refuse_active(record.domain)
        active = replace(
            record, status="active",
            created_at=current.created_at if current else record.created_at,
        )
        self._put(record.domain, active.to_dict())
        logger.info("站点已登记: %s -> %s", record.domain, record.root)
        return active

    def upsert(self, record: SiteRecord) -> SiteRecord:
        """写入或覆盖条目（保留首次登记时间），用于主站点重复部署"""
        current = self.get(record.domain)
        if current is not None:
            record = replace(record, created_at=current.created_at)
        self._put(record.domain, record.to_dict())
        return record

    def remove(self, domain: str) -> bool:
        return self._remove(domain)

    def clear(self) -> int:
        return self._clear()
