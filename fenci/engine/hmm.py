"""
HMM 未登录词识别

功能：
1. HMM 参数（初始 / 转移 / 发射概率，均为自然对数）的校验、加载与保存
2. 基于 B/M/E/S 四状态的 Viterbi 解码
3. 把状态序列转换为词的位置区间

只对词典无法确认的连续单字片段调用，开销与未登录文本的长度成正比。
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple, Union

import orjson

from .errors import HmmParameterError
from .logging import get_engine_logger
from .text import RE_ALNUM, RE_HAN_ONLY

logger = get_engine_logger()

STATES = ('B', 'M', 'E', 'S')

# 文本格式 hmm_model 中各表的状态顺序
FILE_STATE_ORDER = ('B', 'E', 'M', 'S')

# 对数概率下限：未出现的字、不允许的转移
MIN_FLOAT = -3.14e100

# 每个状态允许的前驱状态
PREV_STATES = {
    'B': ('E', 'S'),
    'M': ('M', 'B'),
    'S': ('S', 'E'),
    'E': ('B', 'M'),
}

Span = Tuple[int, int]


@dataclass(frozen=True)
class HmmParameters:
    """只读的 HMM 参数"""
    start: Mapping[str, float]
    trans: Mapping[str, Mapping[str, float]]
    emit: Mapping[str, Mapping[str, float]]
    emit_fallback: float = MIN_FLOAT
    vocab_size: int = field(default=0, compare=False)

    def __post_init__(self):
        for name in ('start', 'trans', 'emit'):
            table = getattr(self, name)
            if not isinstance(table, Mapping):
                raise HmmParameterError(f"{name} 必须是对象: {type(table).__name__}")
            if name == 'start':
                continue
            for s, row in table.items():
                if not isinstance(row, Mapping):
                    raise HmmParameterError(f"{name}[{s!r}] 必须是对象: {type(row).__name__}")

        try:
            start = {s: _as_float(self.start[s]) for s in STATES}
            trans = {
                s: {t: _as_float(v) for t, v in self.trans.get(s, {}).items()}
                for s in STATES
            }
            emit = {
                s: {c: _as_float(v) for c, v in self.emit.get(s, {}).items()}
                for s in STATES
            }
        except KeyError as e:
            raise HmmParameterError(f"缺少初始状态概率: {e}") from None
        except AttributeError as e:
            raise HmmParameterError(f"概率表格式错误: {e}") from None

        for s, row in trans.items():
            unknown = set(row) - set(STATES)
            if unknown:
                raise HmmParameterError(f"转移表含有未知状态: {s} -> {sorted(unknown)}")
        for s, row in emit.items():
            bad = [c for c in row if not isinstance(c, str) or len(c) != 1]
            if bad:
                raise HmmParameterError(f"发射表的键必须是单个字符: {s} -> {bad[:3]}")

        chars = set()
        for row in emit.values():
            chars.update(row)

        # frozen dataclass 只能通过 object.__setattr__ 写入规范化后的表
        object.__setattr__(self, 'start', start)
        object.__setattr__(self, 'trans', trans)
        object.__setattr__(self, 'emit', emit)
        object.__setattr__(self, 'emit_fallback', _as_float(self.emit_fallback))
        object.__setattr__(self, 'vocab_size', len(chars))

    def to_dict(self) -> dict:
        return {
            'start': dict(self.start),
            'trans': {s: dict(row) for s, row in self.trans.items()},
            'emit': {s: dict(row) for s, row in self.emit.items()},
            'emit_fallback': self.emit_fallback,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "HmmParameters":
        if not isinstance(data, Mapping):
            raise HmmParameterError("HMM 参数必须是对象")
        missing = [k for k in ('start', 'trans', 'emit') if k not in data]
        if missing:
            raise HmmParameterError(f"HMM 参数缺少字段: {missing}")
        return cls(
            start=data['start'],
            trans=data['trans'],
            emit=data['emit'],
            emit_fallback=data.get('emit_fallback', MIN_FLOAT),
        )


def _as_float(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise HmmParameterError(f"概率值必须是数字: {value!r}")
    try:
        return float(value)
    except ValueError:
        raise HmmParameterError(f"概率值必须是数字: {value!r}") from None


# ===== 加载 / 保存 =====

def load_hmm_parameters(path: Union[str, os.PathLike]) -> HmmParameters:
    """
    加载 HMM 参数

    `.json` 文件按 {"start", "trans", "emit"} 结构读取；其他文件按
    hmm_model 文本格式（#prob_start / #prob_trans / #prob_emit）读取。

    Raises:
        HmmParameterError: 文件不可读或格式错误
    """
    path = os.fspath(path)
    try:
        with open(path, 'rb') as f:
            raw = f.read()
    except OSError as e:
        raise HmmParameterError(f"无法读取 HMM 参数: {path}: {e}") from e

    if path.endswith('.json'):
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise HmmParameterError(f"HMM 参数不是合法 JSON: {path}: {e}") from e
        params = HmmParameters.from_dict(data)
    else:
        try:
            text = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise HmmParameterError(f"HMM 参数不是 UTF-8 文本: {path}") from e
        params = parse_hmm_model(text.splitlines())

    logger.info(f"HMM 参数加载完成: {path} | 字表 {params.vocab_size}")
    return params


def save_hmm_parameters(params: HmmParameters, path: Union[str, os.PathLike]) -> None:
    """以 JSON 格式保存"""
    with open(path, 'wb') as f:
        f.write(orjson.dumps(params.to_dict(), option=orjson.OPT_INDENT_2))


def parse_hmm_model(lines: List[str]) -> HmmParameters:
    """解析 hmm_model 文本格式"""
    section = None
    start_row: List[str] = []
    trans_rows: List[List[str]] = []
    emit_lines: Dict[str, List[str]] = {s: [] for s in STATES}
    emit_state = None

    for ln in lines:
        stripped = ln.strip()
        if not stripped:
            continue
        if stripped.startswith('#'):
            header = stripped[1:].strip()
            if header.startswith('prob_start'):
                section = 'start'
            elif header.startswith('prob_trans'):
                section = 'trans'
            elif header.startswith('prob_emit'):
                section = 'emit'
            elif section == 'emit' and header in STATES:
                emit_state = header
            continue

        if section == 'start' and not start_row:
            start_row = stripped.split()
        elif section == 'trans' and len(trans_rows) < len(FILE_STATE_ORDER):
            trans_rows.append(stripped.split())
        elif section == 'emit' and emit_state:
            emit_lines[emit_state].append(stripped)

    if len(start_row) != len(FILE_STATE_ORDER):
        raise HmmParameterError("prob_start 不完整")
    if len(trans_rows) != len(FILE_STATE_ORDER) or any(
        len(row) != len(FILE_STATE_ORDER) for row in trans_rows
    ):
        raise HmmParameterError("prob_trans 不完整")

    start = dict(zip(FILE_STATE_ORDER, start_row))
    trans = {
        s: dict(zip(FILE_STATE_ORDER, row))
        for s, row in zip(FILE_STATE_ORDER, trans_rows)
    }
    emit: Dict[str, Dict[str, str]] = {}
    for state, chunks in emit_lines.items():
        table: Dict[str, str] = {}
        for chunk in chunks:
            for item in chunk.split(','):
                if not item:
                    continue
                char, sep, prob = item.partition(':')
                if not sep or len(char) != 1:
                    raise HmmParameterError(f"发射概率格式错误: {state} -> {item!r}")
                table[char] = prob.strip()
        emit[state] = table

    return HmmParameters(start=start, trans=trans, emit=emit)


# ===== 解码 =====

class HmmRecognizer:
    """Viterbi 解码器"""

    def __init__(self, params: HmmParameters):
        self.params = params

    def viterbi(self, run: str) -> Tuple[float, List[str]]:
        """
        Viterbi 解码

        Returns:
            (最优路径对数概率, 每个字的状态标记)
        """
        if not run:
            return 0.0, []

        start_p = self.params.start
        trans_p = self.params.trans
        emit_p = self.params.emit
        fallback = self.params.emit_fallback

        # V[t][state] = 到 t 为止以 state 结尾的最优得分；back[t][state] = 前驱状态
        V: List[Dict[str, float]] = [{}]
        back: List[Dict[str, str]] = [{}]
        for y in STATES:
            V[0][y] = start_p[y] + emit_p[y].get(run[0], fallback)

        for t in range(1, len(run)):
            char = run[t]
            V.append({})
            back.append({})
            for y in STATES:
                em_p = emit_p[y].get(char, fallback)
                prob, state = max(
                    (V[t - 1][y0] + trans_p[y0].get(y, MIN_FLOAT) + em_p, y0)
                    for y0 in PREV_STATES[y]
                )
                V[t][y] = prob
                back[t][y] = state

        # 结尾只能是 E 或 S
        prob, state = max((V[-1][y], y) for y in ('E', 'S'))

        labels = [state]
        for t in range(len(run) - 1, 0, -1):
            state = back[t][state]
            labels.append(state)
        labels.reverse()
        return prob, labels

    def decode(self, run: str) -> List[Span]:
        """
        解码一个片段

        Returns:
            相对片段起点的 (start, stop) 区间：S 为单字词，B M* E 为一个多字词
        """
        _, labels = self.viterbi(run)
        return labels_to_spans(labels)

    def recognize(self, run: str) -> List[Span]:
        """
        识别一段未登录文本

        纯汉字部分走 Viterbi；字母数字串整体保留；其余字符逐个成词。
        """
        spans: List[Span] = []
        offset = 0
        for block in RE_HAN_ONLY.split(run):
            if not block:
                continue
            if RE_HAN_ONLY.fullmatch(block):
                spans.extend((offset + s, offset + e) for s, e in self.decode(block))
            else:
                pos = offset
                for piece in RE_ALNUM.split(block):
                    if not piece:
                        continue
                    if RE_ALNUM.fullmatch(piece):
                        spans.append((pos, pos + len(piece)))
                    else:
                        spans.extend((k, k + 1) for k in range(pos, pos + len(piece)))
                    pos += len(piece)
            offset += len(block)
        return spans

    def cut(self, run: str) -> List[str]:
        return [run[s:e] for s, e in self.recognize(run)]


def labels_to_spans(labels: List[str]) -> List[Span]:
    """把 B/M/E/S 标记转换为区间；未闭合的 B M* 尾部作为一个词"""
    spans: List[Span] = []
    begin = 0
    next_i = 0
    for i, label in enumerate(labels):
        if label == 'B':
            begin = i
        elif label == 'E':
            spans.append((begin, i + 1))
            next_i = i + 1
        elif label == 'S':
            spans.append((i, i + 1))
            next_i = i + 1
    if next_i < len(labels):
        spans.append((next_i, len(labels)))
    return spans
