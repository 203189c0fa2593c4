"""
文本切块与输入校验

分词前先把句子切成"汉字块"和"其他块"：汉字块（含连续的字母数字）交给
词图 + 动态规划处理，其他块按空白拆开，标点等逐字输出。
"""

import re
import unicodedata
from typing import Iterator, List, Tuple

from .errors import InvalidInputError

# CJK 统一表意文字各区段（基本区、扩展 A-F、兼容区）
_CJK_RANGES = (
    r"㐀-䶿一-鿿豈-﫿"
    r"\U00020000-\U0002A6DF\U0002A700-\U0002B73F\U0002B740-\U0002B81F"
    r"\U0002B820-\U0002CEAF\U0002CEB0-\U0002EBEF\U0002F800-\U0002FA1F"
)

# 汉字块：汉字以及可以与汉字相连的字母数字符号
RE_HAN = re.compile(r"([" + _CJK_RANGES + r"a-zA-Z0-9+#&._%\-]+)")
RE_SKIP = re.compile(r"(\r\n|\s)")

# HMM 内部使用：纯汉字片段 / 整体保留的字母数字片段
RE_HAN_ONLY = re.compile(r"([" + _CJK_RANGES + r"]+)")
RE_ALNUM = re.compile(r"([a-zA-Z0-9]+(?:\.\d+)?%?)")


def split_blocks(sentence: str) -> Iterator[Tuple[bool, int, str]]:
    """
    按汉字块切分句子

    Yields:
        (是否汉字块, 起始偏移, 文本)，依次覆盖整个句子
    """
    offset = 0
    for piece in RE_HAN.split(sentence):
        if not piece:
            continue
        yield RE_HAN.fullmatch(piece) is not None, offset, piece
        offset += len(piece)


def split_skip_block(block: str) -> List[str]:
    """非汉字块：空白整体保留，其余逐字输出"""
    words = []
    for piece in RE_SKIP.split(block):
        if not piece:
            continue
        if RE_SKIP.fullmatch(piece):
            words.append(piece)
        else:
            words.extend(piece)
    return words


def validate_sentence(sentence: str) -> str:
    """
    严格模式的输入校验：拒绝除换行、制表符以外的控制字符

    引擎本身接受任意文本，这里只给需要更严格约束的调用方使用（如 HTTP 接口）。
    """
    if not isinstance(sentence, str):
        raise InvalidInputError(f"输入必须是字符串: {type(sentence).__name__}")
    for pos, char in enumerate(sentence):
        if char in '\t\n\r':
            continue
        if unicodedata.category(char) == 'Cc':
            raise InvalidInputError(f"位置 {pos} 含有控制字符 U+{ord(char):04X}")
    return sentence
