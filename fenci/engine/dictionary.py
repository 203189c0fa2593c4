"""
词典模块

提供词频查询、前缀查询等核心功能：
1. 词 → 词频（可选词性标记）
2. 所有词条的真前缀集合，构建词图时用于提前结束扫描
3. 词典一经构建即只读；增删词通过 with_words() 生成新的快照
"""

import os
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .errors import DictionaryLoadError
from .logging import get_engine_logger

logger = get_engine_logger()

# (词, 词频, 词性)
Entry = Tuple[str, int, Optional[str]]
# 用户词典中词频可以省略
UserEntry = Tuple[str, Optional[int], Optional[str]]


class Dictionary:
    """带词频的只读词典"""

    __slots__ = ('_freq', '_tags', '_prefixes', '_total', '_max_len')

    def __init__(self, entries: Iterable[Union[Entry, Tuple[str, int]]] = ()):
        """
        Args:
            entries: (词, 词频) 或 (词, 词频, 词性) 序列，重复的词以后出现者为准
        """
        freq: Dict[str, int] = {}
        tags: Dict[str, str] = {}

        for entry in entries:
            word, count = entry[0], entry[1]
            tag = entry[2] if len(entry) > 2 else None
            _check_entry(word, count)
            freq[word] = count
            if tag:
                tags[word] = tag
            else:
                tags.pop(word, None)

        self._freq = freq
        self._tags = tags
        self._prefixes = frozenset(
            word[:i] for word in freq for i in range(1, len(word))
        )
        self._total = sum(freq.values())
        self._max_len = max((len(w) for w in freq), default=0)

    @classmethod
    def empty(cls) -> "Dictionary":
        """空词典（所有字都按未登录字处理）"""
        return cls()

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: Optional[str] = None) -> "Dictionary":
        """从 `词 词频 [词性]` 格式的文本行构建词典"""
        return cls(_parse_lines(lines, source, freq_required=True))

    # ===== 查询 =====

    def lookup(self, word: str) -> Optional[int]:
        """词频；不在词典中返回 None"""
        return self._freq.get(word)

    def tag(self, word: str) -> Optional[str]:
        """词性标记（只存储，不参与分词）"""
        return self._tags.get(word)

    def is_prefix(self, fragment: str) -> bool:
        """fragment 是否为某个词条本身或其前缀"""
        return fragment in self._freq or fragment in self._prefixes

    def max_word_length(self) -> int:
        return self._max_len

    def total_frequency(self) -> int:
        return self._total

    def __contains__(self, word: object) -> bool:
        return word in self._freq

    def __len__(self) -> int:
        return len(self._freq)

    def __iter__(self) -> Iterator[str]:
        return iter(self._freq)

    def __repr__(self) -> str:
        return f"Dictionary(words={len(self)}, total={self._total}, max_len={self._max_len})"

    # ===== 快照 =====

    def entries(self) -> Iterator[Entry]:
        for word, count in self._freq.items():
            yield word, count, self._tags.get(word)

    def with_words(self, updates: Iterable[Entry]) -> "Dictionary":
        """
        返回应用了更新的新词典，原词典不变

        Args:
            updates: (词, 词频, 词性) 序列；词性为 None 时保留原有词性
        """
        # 增量更新：词条只增不删，前缀集合与词性表没有变化时直接共享
        freq = dict(self._freq)
        tags = self._tags
        total = self._total
        max_len = self._max_len
        new_prefixes = set()

        for word, count, tag in updates:
            _check_entry(word, count)
            total += count - freq.get(word, 0)
            freq[word] = count
            if tag and tags.get(word) != tag:
                if tags is self._tags:
                    tags = dict(tags)
                tags[word] = tag
            max_len = max(max_len, len(word))
            for i in range(1, len(word)):
                prefix = word[:i]
                if prefix not in self._prefixes:
                    new_prefixes.add(prefix)

        prefixes = self._prefixes | new_prefixes if new_prefixes else self._prefixes
        return Dictionary._from_tables(freq, tags, prefixes, total, max_len)

    @classmethod
    def _from_tables(cls, freq, tags, prefixes, total, max_len) -> "Dictionary":
        dictionary = cls.__new__(cls)
        dictionary._freq = freq
        dictionary._tags = tags
        dictionary._prefixes = prefixes
        dictionary._total = total
        dictionary._max_len = max_len
        return dictionary


def _check_entry(word, count) -> None:
    if not isinstance(word, str) or not word:
        raise DictionaryLoadError(f"词条不能为空: {word!r}")
    if isinstance(count, bool) or not isinstance(count, int):
        raise DictionaryLoadError(f"词频必须是整数: {word!r} -> {count!r}")
    if count < 0:
        raise DictionaryLoadError(f"词频不能为负数: {word!r} -> {count}")


def _parse_lines(
    lines: Iterable[str],
    source: Optional[str],
    freq_required: bool,
) -> List[UserEntry]:
    """解析词典文本行，任何一行格式错误都使整个加载失败"""
    entries: List[UserEntry] = []
    for line_no, raw in enumerate(lines, 1):
        line = raw.rstrip('\r\n')
        if line_no == 1:
            line = line.lstrip('\ufeff')
        if not line.strip():
            continue

        parts = line.split()
        if len(parts) > 3:
            raise DictionaryLoadError("字段过多", source, line_no, line)

        word = parts[0]
        count: Optional[int] = None
        tag: Optional[str] = None

        if len(parts) >= 2:
            try:
                count = int(parts[1])
            except ValueError:
                if freq_required or len(parts) == 3:
                    raise DictionaryLoadError("词频不是数字", source, line_no, line) from None
                # 用户词典允许 `词 词性`
                tag = parts[1]
            else:
                if count < 0:
                    raise DictionaryLoadError("词频不能为负数", source, line_no, line)
        elif freq_required:
            raise DictionaryLoadError("缺少词频", source, line_no, line)

        if len(parts) == 3:
            tag = parts[2]

        entries.append((word, count, tag))
    return entries


def _read_lines(path: str) -> List[str]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.readlines()
    except (OSError, UnicodeDecodeError) as e:
        raise DictionaryLoadError(f"无法读取词典: {e}", source=str(path)) from e


def load_dictionary(path: Union[str, os.PathLike]) -> Dictionary:
    """
    从文件加载词典

    Args:
        path: UTF-8 词典文件，每行 `词 词频 [词性]`

    Returns:
        Dictionary 实例

    Raises:
        DictionaryLoadError: 文件不可读或任意一行格式错误
    """
    path = os.fspath(path)
    dictionary = Dictionary.from_lines(_read_lines(path), source=path)
    logger.info(
        f"词典加载完成: {path} | 词条 {len(dictionary)} | 总词频 {dictionary.total_frequency()}"
    )
    return dictionary


def parse_user_dict_lines(lines: Iterable[str], source: Optional[str] = None) -> List[UserEntry]:
    """解析用户词典：`词 [词频] [词性]`，词频缺省时由调用方推算"""
    return _parse_lines(lines, source, freq_required=False)


def load_user_dict(path: Union[str, os.PathLike]) -> List[UserEntry]:
    path = os.fspath(path)
    return parse_user_dict_lines(_read_lines(path), source=path)
