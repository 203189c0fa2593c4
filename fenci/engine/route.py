"""
最优路径搜索

在词图上从右向左做动态规划，找出总对数概率最大的切分：

    score[N] = 0
    score[i] = max( log(freq(i..j) + 1) - log_total + score[j+1] )  对所有边 (i, j)

未登录单字用 unknown_word_freq 作为词频下限，保证每一步都是有限值。
"""

import math
from typing import List, Optional, Tuple

from .config import SegmenterConfig
from .dag import DAG
from .dictionary import Dictionary

# (score[i], 选中的结束位置 j)
Route = List[Tuple[float, int]]
Path = List[Tuple[int, int]]


def log_total(dictionary: Dictionary, unknown_word_freq: float) -> float:
    """归一化项，保证任意一条边的增量都不为正"""
    return math.log(max(dictionary.total_frequency(), unknown_word_freq) + 1)


def calc_route(
    sentence: str,
    dag: DAG,
    dictionary: Dictionary,
    config: Optional[SegmenterConfig] = None,
) -> Route:
    """
    计算得分表

    Returns:
        长度 N+1 的列表，route[i] = (从 i 到句末的最优得分, 第一个词的结束位置)；
        route[N] = (0.0, N) 为哨兵
    """
    config = config or SegmenterConfig()
    n = len(sentence)
    norm = log_total(dictionary, config.unknown_word_freq)

    route: Route = [(0.0, 0)] * (n + 1)
    route[n] = (0.0, n)

    for i in range(n - 1, -1, -1):
        best_score = -math.inf
        best_end = i
        for j in dag[i]:
            freq = dictionary.lookup(sentence[i:j + 1]) or config.unknown_word_freq
            score = math.log(freq + 1) - norm + route[j + 1][0]
            if score > best_score:
                best_score, best_end = score, j
            elif score == best_score:
                # 平分时按配置偏向长词或短词
                if config.prefer_longer and j > best_end:
                    best_end = j
                elif not config.prefer_longer and j < best_end:
                    best_end = j
        route[i] = (best_score, best_end)

    return route


def find_best_path(
    sentence: str,
    dag: DAG,
    dictionary: Dictionary,
    config: Optional[SegmenterConfig] = None,
) -> Path:
    """
    最优切分路径

    Returns:
        左闭右开的 (start, stop) 列表，按顺序无缝覆盖整个句子；空句子返回 []
    """
    if not sentence:
        return []

    route = calc_route(sentence, dag, dictionary, config)
    path: Path = []
    i = 0
    n = len(sentence)
    while i < n:
        stop = route[i][1] + 1
        path.append((i, stop))
        i = stop
    return path
