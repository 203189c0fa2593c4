"""
词图构建

对句子中每个起始位置 i，列出所有使 sentence[i:j+1] 成为词典词的结束位置 j。
单字边 (i, i) 总是存在，保证从 0 到 N-1 一定可以走通。
"""

from typing import Dict, Iterator, List, Tuple

from .dictionary import Dictionary

DAG = Dict[int, List[int]]


def build_dag(sentence: str, dictionary: Dictionary) -> DAG:
    """
    构建词图

    Args:
        sentence: 待切分文本
        dictionary: 词典

    Returns:
        {起始位置: 升序的结束位置列表（闭区间）}
    """
    n = len(sentence)
    max_len = dictionary.max_word_length()
    dag: DAG = {}

    for i in range(n):
        ends = [i]
        limit = min(n, i + max(max_len, 1))
        for j in range(i, limit):
            frag = sentence[i:j + 1]
            if not dictionary.is_prefix(frag):
                break
            # 词频为 0 的词条只作为前缀存在，不成边
            if j > i and dictionary.lookup(frag):
                ends.append(j)
        dag[i] = ends

    return dag


def dag_edges(dag: DAG) -> Iterator[Tuple[int, int]]:
    """按 (起点, 终点) 升序遍历所有边"""
    for i in sorted(dag):
        for j in dag[i]:
            yield i, j


def is_word_edge(sentence: str, i: int, j: int, dictionary: Dictionary) -> bool:
    """边 (i, j) 是否对应词典中的真实词条（区别于单字兜底边）"""
    return bool(dictionary.lookup(sentence[i:j + 1]))
