# mlpoints/data/datasource.py
from __future__ import annotations

from pathlib import Path
from typing import Iterator

from mlpoints.utils.errors import UserInputError
from mlpoints.utils.filesystem import FileSystem
from mlpoints.utils.logger import logs


def read_lines(path: str | Path) -> list[str]:
    """读取文本文件的所有行（去掉行尾换行，保留空行以便按策略处理）。"""
    path = Path(path)
    if not path.is_file():
        raise UserInputError(f"data file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return [line.rstrip("\r\n") for line in f]


class LibSvmSource:
    """
    本地目录数据源（只负责定位 / 枚举输入文件）

    - suffixes 为空时取目录下所有文件
    - 文件按名字排序，保证行顺序（以及 row id）可复现
    """

    def __init__(self, input_dir: str | Path, suffixes: tuple[str, ...] = (".txt", ".svm")):
        if not str(input_dir):
            raise UserInputError("The input dir is empty")
        self.input_dir = Path(input_dir)
        self.suffixes = suffixes

    def files(self) -> list[Path]:
        if not self.input_dir.is_dir():
            raise UserInputError(f"input dir not found: {self.input_dir}")

        files = FileSystem.scan_dir(self.input_dir, self.suffixes)
        logs.info(f"[LibSvmSource] {self.input_dir} -> {len(files)} files")
        return files

    def iter_lines(self) -> Iterator[str]:
        for file in self.files():
            yield from read_lines(file)
