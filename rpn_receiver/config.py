import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

# 节点池与栈在未指定容量（0）时使用的默认容量
DEFAULT_CAPACITY: int = 16

# 表达式标记缓冲区从容量 1 开始倍增
TOKEN_BUFFER_INITIAL_CAPACITY: int = 1

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

WS_URI: str = os.environ.get("RPN_WS_URI", "ws://localhost:3001")
LOG_FILE: str = os.environ.get("RPN_LOG_FILE", "rpn.log")
LOG_LEVEL: str = os.environ.get("RPN_LOG_LEVEL", "INFO")


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        logging.error(f"环境变量 {name} 不是整数: {value}")
        return default


# 0 表示使用 DEFAULT_CAPACITY
ARENA_CAPACITY: int = _env_int("RPN_ARENA_CAPACITY", 0)


def resolve_capacity(capacity: int) -> int:
    """
    将请求的容量转换为实际容量，0 映射为默认容量
    """
    if capacity < 0:
        raise ValueError(f"容量不能为负数: {capacity}")
    return capacity if capacity else DEFAULT_CAPACITY


def setup_logging(log_file: Optional[str] = LOG_FILE, level: str = LOG_LEVEL) -> None:
    """
    配置根日志记录器：控制台输出，并按天轮转写入日志文件

    Args:
        log_file: 日志文件路径，为 None 时只输出到控制台
        level: 日志级别名称
    """
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)

    if log_file is None:
        return

    # 创建一个按天轮转的日志处理器，保留所有日志
    timed_handler = TimedRotatingFileHandler(
        filename=log_file,
        when='midnight',
        interval=1,
        backupCount=0,  # 设置为0表示不删除旧日志文件
        encoding='utf-8'
    )
    timed_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(timed_handler)
