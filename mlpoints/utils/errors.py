# mlpoints/utils/errors.py
from __future__ import annotations


class PointsError(RuntimeError):
    """mlpoints 所有领域异常的基类。"""


class UserInputError(PointsError):
    """
    Raised for invalid user-provided config (paths, column names, etc).
    Should NOT print traceback.
    """


class ParseError(PointsError):
    """
    稀疏文本行 / token 格式错误。

    - line_no: 行号（0-based，未知时为 None）
    - line: 原始行内容
    """

    def __init__(self, message: str, *, line_no: int | None = None, line: str | None = None):
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no
        self.line = line

    def __reduce__(self):
        # worker 进程 → 主进程：保留属性，message 不重复加前缀
        return (self.__class__, (str(self),), self.__dict__)


class InvalidLabel(ParseError):
    """0-based 转换后出现负 label id（配置 / 编码不匹配）。"""


class SchemaError(PointsError):
    """输入列缺失 / 类型不匹配 / 输出列名冲突。"""


class ClassificationError(PointsError):
    """外部注入的分类函数对某个 point 失败。原始异常保留在 __cause__。"""

    def __init__(self, message: str, *, point_id: int | None = None):
        super().__init__(message)
        self.point_id = point_id

    def __reduce__(self):
        return (self.__class__, (str(self),), self.__dict__)
