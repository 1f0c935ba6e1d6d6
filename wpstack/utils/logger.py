"""wpstack 日志配置

控制台（stderr）输出 + 追加写入的运行日志文件。
运行日志只追加，不轮转也不截断。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from wpstack.core.exceptions import ConfigError

RUN_LOG_FORMAT = "%(asctime)s - %(message)s"
RUN_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# setup_logging 安装的 handlers，reset 时只移除这些
_installed: list[logging.Handler] = []


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器，便于日志采集系统消费"""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: str = "",
) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR）
        json_output: 控制台使用 JSON 格式
        log_file: 运行日志路径，非空时追加写入

    说明:
        - 重复调用时先移除上次安装的 handlers，避免重复输出
        - 运行日志无法打开时抛 ConfigError，不在缺少运行日志的情况下继续
    """
    reset_logging()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    console = logging.StreamHandler(sys.stderr)
    if json_output:
        console.setFormatter(JSONFormatter())
    else:
        console.setFormatter(logging.Formatter(RUN_LOG_FORMAT, RUN_LOG_DATEFMT))
    root.addHandler(console)
    _installed.append(console)

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"无法打开运行日志 {log_file}: {e}") from e
        fh.setFormatter(logging.Formatter(RUN_LOG_FORMAT, RUN_LOG_DATEFMT))
        root.addHandler(fh)
        _installed.append(fh)


def reset_logging() -> None:
    """移除 setup_logging 安装的 handlers"""
    root = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()
