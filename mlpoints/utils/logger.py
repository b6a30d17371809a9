#!filepath: mlpoints/utils/logger.py
import os
from functools import wraps
from time import perf_counter
from typing import Callable, Optional

from loguru import logger

from mlpoints.config.log_config import LogConfig

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level:<7} | pid={process} | {message}"


class Logging:
    """
    loguru 封装（全局单例 logs）
    ---------------------------------------
    - 一个按天切割的文件 sink，参数来自 LogConfig
    - enqueue=True：ProcessPool worker 写同一个 sink
    - catch()：记录异常 + 耗时，异常继续向上抛
    ---------------------------------------
    """

    def __init__(self, config: Optional[LogConfig] = None):
        self.config = config or LogConfig()
        self.configure(self.config)

    def configure(self, config: LogConfig) -> "Logging":
        """替换 sink（原地修改，已 import 的 logs 引用继续有效）"""
        os.makedirs(config.dir, exist_ok=True)

        logger.remove()
        logger.add(
            sink=os.path.join(config.dir, "mlpoints_{time:YYYY-MM-DD}.log"),
            rotation=config.rotation,
            retention=config.retention,
            level=config.level,
            format=LOG_FORMAT,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
        self.config = config
        return self

    def debug(self, msg: str, *args, **kwargs):
        logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        logger.error(msg, *args, **kwargs)

    # ---------- 装饰器 ----------
    def catch(self, msg: str = "failed", log_time: bool = True) -> Callable:
        """
        @logs.catch(msg="loading LibSVM data")

        异常：带 traceback 记一条 error 后原样抛出（不吞异常）
        成功：log_time=True 时记录耗时
        """

        def decorator(func: Callable):
            name = func.__qualname__

            @wraps(func)
            def wrapper(*args, **kwargs):
                start = perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception:
                    logger.exception(f"[{name}] {msg}")
                    raise

                if log_time:
                    logger.info(f"[{name}] took {perf_counter() - start:.4f}s")
                return result

            return wrapper

        return decorator


# 默认全局 logs（init_logging 按配置重新挂 sink）
logs = Logging()


def init_logging(cfg: LogConfig) -> Logging:
    return logs.configure(cfg)
