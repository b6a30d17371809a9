#!filepath: mlpoints/utils/filesystem.py
import os
import shutil
from pathlib import Path
from typing import Iterable, List, Optional

from mlpoints.utils.logger import logs


class FileSystem:
    """
    本地文件操作（数据文件 / 模型 / 索引输出）
    - 写入一律 staging → fsync → replace，读者看不到写了一半的文件
    - 路径参数接受 str / Path
    """

    @staticmethod
    def ensure_dir(path: str | Path) -> Path:
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)
        return p

    @staticmethod
    def staging_path(path: str | Path) -> Path:
        """同目录下的临时文件：与目标在同一文件系统，replace 才是原子的"""
        p = Path(path)
        return p.with_name(f".{p.name}.tmp")

    @staticmethod
    def safe_write(path: str | Path, data: bytes) -> Path:
        path = Path(path)
        FileSystem.ensure_dir(path.parent)
        staging = FileSystem.staging_path(path)

        try:
            with open(staging, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
        except BaseException:
            FileSystem.remove(staging)
            raise

        os.replace(staging, path)
        logs.debug(f"[FS] committed bytes={len(data)} -> {path}")
        return path

    @staticmethod
    def remove(path: str | Path) -> bool:
        """删除文件或目录；路径不存在时返回 False"""
        p = Path(path)
        if p.is_dir():
            shutil.rmtree(p)
        elif p.exists():
            p.unlink()
        else:
            return False
        logs.debug(f"[FS] removed {p}")
        return True

    @staticmethod
    def scan_dir(path: str | Path, suffixes: Optional[Iterable[str]] = None) -> List[Path]:
        """目录下的普通文件（不递归），可按后缀过滤，按文件名排序"""
        p = Path(path)
        if not p.is_dir():
            return []

        wanted = set(suffixes) if suffixes else None
        return sorted(
            f for f in p.iterdir()
            if f.is_file() and (wanted is None or f.suffix in wanted)
        )
