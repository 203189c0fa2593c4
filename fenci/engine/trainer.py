"""
HMM 参数训练

从人工分好词的语料（词之间以空白分隔）统计 B/M/E/S 状态：
- 初始概率：每个小句第一个字的状态
- 转移概率：相邻两个字的状态
- 发射概率：状态下出现的字，加一平滑

所有概率以自然对数保存，可直接用于 HmmRecognizer。
"""

import math
import os
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Union

from .hmm import MIN_FLOAT, STATES, HmmParameters
from .logging import get_engine_logger

logger = get_engine_logger()

# 小句分隔符
RE_CLAUSE = re.compile(r'[，。；？！：、,.;?!:]')


def word_to_labels(word: str) -> List[str]:
    """单个词对应的状态序列"""
    if len(word) == 1:
        return ['S']
    return ['B'] + ['M'] * (len(word) - 2) + ['E']


class HmmTrainer:
    """HMM 参数训练器"""

    def __init__(self):
        self.reset()

    def reset(self):
        self.counts_pi: Dict[str, int] = defaultdict(int)
        self.counts_a: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self.counts_b: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self.chars = set()
        self.sentences = 0

    def feed(self, line: str) -> None:
        """统计一行语料"""
        for clause in RE_CLAUSE.split(line.strip()):
            words = clause.split()
            if not words:
                continue
            self.sentences += 1
            prev = None
            for word in words:
                for char, label in zip(word, word_to_labels(word)):
                    self.chars.add(char)
                    if prev is None:
                        self.counts_pi[label] += 1
                    else:
                        self.counts_a[prev][label] += 1
                    self.counts_b[label][char] += 1
                    prev = label

    def train(self, lines: Iterable[str]) -> HmmParameters:
        """统计语料并返回参数"""
        for line in lines:
            self.feed(line)
        return self.build()

    def train_file(self, path: Union[str, os.PathLike]) -> HmmParameters:
        with open(path, 'r', encoding='utf-8') as f:
            params = self.train(f)
        logger.info(f"HMM 训练完成: {os.fspath(path)} | 小句 {self.sentences} | 字表 {len(self.chars)}")
        return params

    def build(self) -> HmmParameters:
        """把计数转换为对数概率"""
        start = self._log_normalize(self.counts_pi)

        trans = {s: self._log_normalize(self.counts_a.get(s, {})) for s in STATES}

        # 发射概率：加一平滑，未出现的字统一回退到 1 / 总数
        vocab = len(self.chars)
        emit: Dict[str, Dict[str, float]] = {}
        fallbacks = []
        for s in STATES:
            row = self.counts_b.get(s, {})
            total = sum(row.values()) + vocab
            if total == 0:
                emit[s] = {}
                continue
            emit[s] = {c: math.log((row.get(c, 0) + 1) / total) for c in self.chars}
            fallbacks.append(math.log(1 / (total + 1)))

        return HmmParameters(
            start=start,
            trans=trans,
            emit=emit,
            emit_fallback=min(fallbacks) if fallbacks else MIN_FLOAT,
        )

    @staticmethod
    def _log_normalize(counts: Dict[str, int]) -> Dict[str, float]:
        """计数 → 对数概率；没有出现过的状态给 MIN_FLOAT"""
        total = sum(counts.values())
        result = {}
        for s in STATES:
            count = counts.get(s, 0)
            result[s] = math.log(count / total) if count and total else MIN_FLOAT
        return result
