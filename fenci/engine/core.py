import os
import threading
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .config import SegmenterConfig, Token, TokenizeMode
from .dag import build_dag, dag_edges, is_word_edge
from .dictionary import Dictionary, load_user_dict, parse_user_dict_lines
from .hmm import HmmParameters, HmmRecognizer
from .logging import get_engine_logger, log_execution_time
from .route import find_best_path
from .text import split_blocks, split_skip_block

logger = get_engine_logger()

Span = Tuple[int, int]


class Segmenter:
    """
    中文分词器

    核心思路：词典为主，HMM 为辅
    - 词图 + 动态规划得到最优切分
    - 词典无法确认的连续单字交给 HMM 重新切分
    - 词典与 HMM 参数只读共享，每次调用的中间结果都是局部变量
    """

    def __init__(
        self,
        dictionary: Dictionary,
        hmm: Optional[HmmParameters] = None,
        config: Optional[SegmenterConfig] = None,
    ):
        self.config = config or SegmenterConfig()
        self._dictionary = dictionary
        self._recognizer = HmmRecognizer(hmm) if hmm is not None else None
        # 只用于串行化写操作，读路径不加锁
        self._write_lock = threading.Lock()

    @property
    def dictionary(self) -> Dictionary:
        """当前词典快照"""
        return self._dictionary

    @property
    def hmm_enabled(self) -> bool:
        return self._recognizer is not None and self.config.enable_hmm

    # ===== 切分入口 =====

    def cut(self, sentence: str, hmm: bool = True) -> List[str]:
        """精确模式"""
        return [t.word for t in self.tokenize(sentence, TokenizeMode.DEFAULT, hmm)]

    def cut_for_search(self, sentence: str, hmm: bool = True) -> List[str]:
        """搜索引擎模式：精确模式的基础上，长词再输出其中的短词"""
        return [t.word for t in self.tokenize(sentence, TokenizeMode.SEARCH, hmm)]

    def cut_with_mode(
        self,
        sentence: str,
        mode: Union[TokenizeMode, str] = TokenizeMode.DEFAULT,
        hmm: bool = True,
    ) -> List[str]:
        return [t.word for t in self.tokenize(sentence, mode, hmm)]

    def cut_all(self, sentence: str) -> List[str]:
        """
        全模式：输出词图中所有词典词

        按起点升序、同一起点按终点升序输出，结果可能相互重叠。
        单字只有本身是词典词时才输出。
        """
        dictionary = self._dictionary
        words: List[str] = []
        for is_han, _, block in self._blocks(sentence):
            if not is_han:
                words.extend(split_skip_block(block))
                continue
            dag = build_dag(block, dictionary)
            for i, j in dag_edges(dag):
                if is_word_edge(block, i, j, dictionary):
                    words.append(block[i:j + 1])
        return words

    def tokenize(
        self,
        sentence: str,
        mode: Union[TokenizeMode, str] = TokenizeMode.DEFAULT,
        hmm: bool = True,
    ) -> List[Token]:
        """
        切分并返回每个词的字符位置

        Args:
            sentence: 待切分文本
            mode: DEFAULT 精确模式 / SEARCH 搜索引擎模式
            hmm: 是否识别未登录词

        Returns:
            Token 列表
        """
        mode = TokenizeMode(mode)
        # 整个调用只使用同一个词典快照
        dictionary = self._dictionary
        use_hmm = hmm and self.hmm_enabled

        spans = self._cut_spans(sentence, dictionary, use_hmm)
        if mode == TokenizeMode.SEARCH:
            spans = self._expand_for_search(sentence, spans, dictionary)
        return [Token(sentence[s:e], s, e) for s, e in spans]

    # ===== 内部实现 =====

    def _blocks(self, sentence: str):
        if self.config.split_blocks:
            yield from split_blocks(sentence)
        elif sentence:
            yield True, 0, sentence

    def _cut_spans(self, sentence: str, dictionary: Dictionary, use_hmm: bool) -> List[Span]:
        spans: List[Span] = []
        for is_han, offset, block in self._blocks(sentence):
            if is_han:
                spans.extend(
                    (offset + s, offset + e)
                    for s, e in self._cut_block(block, dictionary, use_hmm)
                )
            else:
                pos = offset
                for piece in split_skip_block(block):
                    spans.append((pos, pos + len(piece)))
                    pos += len(piece)
        return spans

    def _cut_block(self, block: str, dictionary: Dictionary, use_hmm: bool) -> List[Span]:
        """词图 + 最优路径，再把兜底单字组成的片段交给 HMM"""
        dag = build_dag(block, dictionary)
        path = find_best_path(block, dag, dictionary, self.config)

        spans: List[Span] = []
        run_start = None
        for start, stop in path:
            # 非词典单字：累积到片段中
            if stop - start == 1 and not dictionary.lookup(block[start]):
                if run_start is None:
                    run_start = start
                continue
            if run_start is not None:
                spans.extend(self._resolve_run(block, run_start, start, use_hmm))
                run_start = None
            spans.append((start, stop))

        if run_start is not None:
            spans.extend(self._resolve_run(block, run_start, len(block), use_hmm))
        return spans

    def _resolve_run(self, block: str, start: int, stop: int, use_hmm: bool) -> List[Span]:
        if not use_hmm or stop - start < 2:
            return [(k, k + 1) for k in range(start, stop)]
        return [
            (start + s, start + e)
            for s, e in self._recognizer.recognize(block[start:stop])
        ]

    @staticmethod
    def _expand_for_search(sentence: str, spans: List[Span], dictionary: Dictionary) -> List[Span]:
        """
        长词之前插入其中的词典短词（长度 >= 2），按长度、位置排序

        去重只在同一个长词内部进行：同一个长词在句中出现多次时，每次出现都各自
        展开，这样 tokenize 给出的每个短词都带有它在该处的真实位置。
        """
        expanded: List[Span] = []
        for start, stop in spans:
            length = stop - start
            if length > 2:
                seen = set()
                for n in range(2, length):
                    for k in range(start, stop - n + 1):
                        word = sentence[k:k + n]
                        if word not in seen and dictionary.lookup(word):
                            seen.add(word)
                            expanded.append((k, k + n))
            expanded.append((start, stop))
        return expanded

    # ===== 词典维护（写时复制） =====

    def add_word(self, word: str, freq: Optional[int] = None, tag: Optional[str] = None) -> int:
        """
        添加或更新词条

        Args:
            word: 词
            freq: 词频；缺省时用 suggest_freq 推算一个能让该词整体切出的值
            tag: 词性

        Returns:
            实际写入的词频
        """
        with self._write_lock:
            if freq is None:
                _, freq = self._suggest(word, self._dictionary)
            self._dictionary = self._dictionary.with_words([(word, freq, tag)])
        logger.debug(f"词典更新: {word} -> {freq}")
        return freq

    def del_word(self, word: str) -> None:
        """删除词条（词频置 0，不再作为词图的边）"""
        self.add_word(word, 0)

    def suggest_freq(self, segment: Union[str, Sequence[str]], tune: bool = False) -> int:
        """
        推算词频

        - 传入字符串：返回能让它作为一个整体切出的词频
        - 传入词序列：返回能让它被切成这些词的词频

        Args:
            tune: 是否把推算结果写入词典
        """
        if not tune:
            return self._suggest(segment, self._dictionary)[1]

        # 推算与写入在同一把锁内完成
        with self._write_lock:
            word, freq = self._suggest(segment, self._dictionary)
            self._dictionary = self._dictionary.with_words([(word, freq, None)])
        logger.debug(f"词典更新: {word} -> {freq}")
        return freq

    def _suggest(self, segment: Union[str, Sequence[str]], dictionary: Dictionary) -> Tuple[str, int]:
        total = float(max(dictionary.total_frequency(), 1))

        def freq_of(w: str) -> int:
            count = dictionary.lookup(w)
            return 1 if count is None else count

        prob = 1.0
        if isinstance(segment, str):
            word = segment
            for start, stop in self._cut_spans(word, dictionary, use_hmm=False):
                prob *= freq_of(word[start:stop]) / total
            return word, max(int(prob * total) + 1, freq_of(word))

        parts = list(segment)
        word = ''.join(parts)
        for part in parts:
            prob *= freq_of(part) / total
        return word, min(int(prob * total), dictionary.lookup(word) or 0)

    @log_execution_time(logger)
    def load_userdict(self, source: Union[str, os.PathLike, Iterable[str]]) -> int:
        """
        加载用户词典

        Args:
            source: 文件路径，或 `词 [词频] [词性]` 格式的文本行

        Returns:
            加载的词条数
        """
        if isinstance(source, (str, os.PathLike)):
            entries = load_user_dict(source)
        else:
            entries = parse_user_dict_lines(source)

        with self._write_lock:
            # 先写入给定词频的词条，再以新快照推算缺省词频
            dictionary = self._dictionary.with_words(
                [(w, c, t) for w, c, t in entries if c is not None]
            )
            implicit = [(w, t) for w, c, t in entries if c is None]
            if implicit:
                dictionary = dictionary.with_words(
                    [(w, self._suggest(w, dictionary)[1], t) for w, t in implicit]
                )
            self._dictionary = dictionary

        logger.info(f"用户词典加载完成: {len(entries)} 条 | 词典共 {len(dictionary)} 条")
        return len(entries)
