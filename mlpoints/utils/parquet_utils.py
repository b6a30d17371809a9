# mlpoints/utils/parquet_utils.py
from pathlib import Path
import os

import pyarrow as pa
import pyarrow.parquet as pq

from mlpoints.utils.filesystem import FileSystem
from mlpoints.utils.logger import logs


class ParquetAtomicWriter:
    """
    发布派生集合（索引 / 分类结果）

      - 先写同目录 staging 文件并 fsync
      - 成功后 replace → 正式 parquet
      - 任一步失败：删掉 staging，目标路径保持原样
    """

    @staticmethod
    def write_table(table: pa.Table, output_path: str | Path, **kwargs) -> Path:
        output_path = Path(output_path)
        FileSystem.ensure_dir(output_path.parent)
        staging = FileSystem.staging_path(output_path)

        try:
            pq.write_table(table, staging, **kwargs)
            with open(staging, "rb") as f:
                os.fsync(f.fileno())
        except BaseException:
            FileSystem.remove(staging)
            raise

        os.replace(staging, output_path)
        logs.info(
            f"[Parquet] committed rows={table.num_rows} "
            f"columns={table.num_columns} -> {output_path}"
        )
        return output_path
