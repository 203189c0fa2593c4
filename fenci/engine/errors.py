"""
引擎异常定义

- DictionaryLoadError: 词典源格式错误或不可读，初始化失败
- HmmParameterError: HMM 参数格式错误，调用方降级为不识别未登录词
- InvalidInputError: 调用方开启严格校验时，输入含有不支持的控制字符
"""

from typing import Optional


class FenciError(Exception):
    """所有引擎异常的基类"""


class DictionaryLoadError(FenciError):
    """词典加载失败"""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        line_no: Optional[int] = None,
        line: Optional[str] = None,
    ):
        self.source = source
        self.line_no = line_no
        self.line = line

        where = source or '<memory>'
        if line_no is not None:
            where = f"{where}:{line_no}"
        detail = f"{where}: {message}"
        if line is not None:
            detail = f"{detail} (行内容: {line!r})"
        super().__init__(detail)


class HmmParameterError(FenciError):
    """HMM 参数无效"""


class InvalidInputError(FenciError, ValueError):
    """输入文本不合法"""
