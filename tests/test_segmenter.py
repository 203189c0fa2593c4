"""
分词器测试：三种切分模式、位置信息、词典维护
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

import pytest

from fenci.engine import (
    Dictionary,
    DictionaryLoadError,
    Segmenter,
    SegmenterConfig,
    Token,
    TokenizeMode,
    create_segmenter,
    resolve_level,
)


class TestCut:
    """精确模式"""

    def test_basic(self, segmenter):
        assert segmenter.cut("你好世界") == ["你好", "世界"]

    def test_longest_path_wins(self, segmenter):
        assert segmenter.cut("南京市长江大桥") == ["南京市", "长江大桥"]

    def test_unknown_word_recognized_by_hmm(self, segmenter):
        assert segmenter.cut("他来到了网易杭研大厦") == ["他", "来到", "了", "网易", "杭研", "大厦"]

    def test_hmm_disabled_per_call(self, segmenter):
        assert segmenter.cut("他来到了网易杭研大厦", hmm=False) == [
            "他", "来到", "了", "网易", "杭", "研", "大厦"
        ]

    def test_without_hmm_parameters(self, plain_segmenter):
        assert not plain_segmenter.hmm_enabled
        assert plain_segmenter.cut("龘靐齉") == ["龘", "靐", "齉"]

    def test_all_unknown(self, segmenter):
        assert segmenter.cut("龘靐齉") == ["龘靐齉"]

    def test_dictionary_chars_not_sent_to_hmm(self, segmenter):
        """词典里的单字（的）把未登录片段隔开"""
        recognizer = segmenter._recognizer
        with mock.patch.object(recognizer, "recognize", wraps=recognizer.recognize) as spy:
            assert segmenter.cut("杭研的杭研") == ["杭研", "的", "杭研"]
        assert [c.args[0] for c in spy.call_args_list] == ["杭研", "杭研"]

    def test_single_unknown_char_skips_hmm(self, segmenter):
        recognizer = segmenter._recognizer
        with mock.patch.object(recognizer, "recognize", wraps=recognizer.recognize) as spy:
            assert segmenter.cut("他来到杭") == ["他", "来到", "杭"]
        spy.assert_not_called()

    def test_punctuation_and_whitespace(self, segmenter):
        assert segmenter.cut("你好，世界！") == ["你好", "，", "世界", "！"]
        assert segmenter.cut("你好\r\n世界") == ["你好", "\r\n", "世界"]

    def test_alnum_kept_whole_with_hmm(self, segmenter, plain_segmenter):
        assert segmenter.cut("hello world") == ["hello", " ", "world"]
        assert plain_segmenter.cut("hi 你好") == ["h", "i", " ", "你好"]

    def test_empty(self, segmenter):
        assert segmenter.cut("") == []
        assert segmenter.cut_all("") == []
        assert segmenter.tokenize("") == []

    @pytest.mark.parametrize("text", [
        "他来到了网易杭研大厦",
        "小明硕士毕业于中国科学院计算所，后在日本京都大学深造",
        "hello, 世界 2024年 3.5% ...",
        "  \t\n",
        "龘靐齉的杭研abc",
    ])
    def test_concatenation_restores_input(self, segmenter, text):
        words = segmenter.cut(text)
        assert "".join(words) == text
        assert all(words)
        # 对输出再切一次结果不变
        assert segmenter.cut("".join(words)) == words

    def test_without_block_split(self, dictionary):
        seg = Segmenter(dictionary, None, SegmenterConfig(dict_path=None, split_blocks=False))
        assert seg.cut("你好，世界") == ["你好", "，", "世界"]

    def test_empty_dictionary(self):
        seg = Segmenter(Dictionary.empty(), None, SegmenterConfig(dict_path=None))
        assert seg.cut("你好") == ["你", "好"]


class TestCutAll:
    """全模式"""

    def test_all_dictionary_words(self, segmenter):
        assert segmenter.cut_all("南京市长江大桥") == [
            "南", "南京", "南京市", "京", "京市", "市", "市长",
            "长", "长江", "长江大桥", "江", "大", "大桥", "桥",
        ]

    def test_contains_exact_mode_words(self, segmenter):
        text = "小明硕士毕业于中国科学院计算所"
        full = set(segmenter.cut_all(text))
        exact = [w for w in segmenter.cut(text, hmm=False) if len(w) > 1]
        assert set(exact) <= full

    def test_non_han_pass_through(self, segmenter):
        assert segmenter.cut_all("你好，世界") == ["你", "你好", "好", "，", "世", "世界", "界"]

    def test_unknown_single_chars_omitted(self, segmenter):
        assert segmenter.cut_all("杭研大厦") == ["大", "大厦"]


class TestCutForSearch:
    """搜索引擎模式"""

    def test_sub_words_before_long_word(self, segmenter):
        assert segmenter.cut_for_search("小明硕士毕业于中国科学院计算所") == [
            "小明", "硕士", "毕业", "于",
            "中国", "科学", "学院", "科学院", "中国科学院",
            "计算", "计算所",
        ]

    def test_short_words_unchanged(self, segmenter):
        assert segmenter.cut_for_search("你好世界") == ["你好", "世界"]

    def test_repeated_word_expanded_per_occurrence(self, segmenter):
        """同一个长词出现两次时各自展开，短词带各自的位置"""
        tokens = segmenter.tokenize("中国科学院中国科学院", TokenizeMode.SEARCH)
        first = [
            Token("中国", 0, 2),
            Token("科学", 2, 4),
            Token("学院", 3, 5),
            Token("科学院", 2, 5),
            Token("中国科学院", 0, 5),
        ]
        second = [Token(t.word, t.start + 5, t.end + 5) for t in first]
        assert tokens == first + second

    def test_cut_with_mode(self, segmenter):
        assert segmenter.cut_with_mode("中国科学院", "search") == segmenter.cut_for_search("中国科学院")
        assert segmenter.cut_with_mode("中国科学院") == ["中国科学院"]


class TestTokenize:
    """带位置的切分"""

    def test_default_offsets(self, segmenter):
        assert segmenter.tokenize("你好世界") == [Token("你好", 0, 2), Token("世界", 2, 4)]

    def test_offsets_across_blocks(self, segmenter):
        text = "你好，杭研abc"
        for token in segmenter.tokenize(text):
            assert text[token.start:token.end] == token.word

    def test_search_offsets(self, segmenter):
        assert segmenter.tokenize("中国科学院", TokenizeMode.SEARCH) == [
            Token("中国", 0, 2),
            Token("科学", 2, 4),
            Token("学院", 3, 5),
            Token("科学院", 2, 5),
            Token("中国科学院", 0, 5),
        ]

    def test_unknown_mode(self, segmenter):
        with pytest.raises(ValueError):
            segmenter.tokenize("你好", "everything")


class TestDictionaryMaintenance:
    """运行时增删词条"""

    def test_add_word_with_suggested_freq(self, plain_segmenter):
        old = plain_segmenter.dictionary
        assert plain_segmenter.cut("杭研大厦") == ["杭", "研", "大厦"]

        assert plain_segmenter.add_word("杭研") == 1
        assert plain_segmenter.cut("杭研大厦") == ["杭研", "大厦"]
        # 旧快照不受影响
        assert old.lookup("杭研") is None

    def test_add_word_with_tag(self, plain_segmenter):
        plain_segmenter.add_word("杭研", 5, "nz")
        assert plain_segmenter.dictionary.lookup("杭研") == 5
        assert plain_segmenter.dictionary.tag("杭研") == "nz"

    def test_del_word(self, segmenter):
        segmenter.del_word("长江大桥")
        assert segmenter.cut("南京市长江大桥") == ["南京市", "长江", "大桥"]
        assert "长江大桥" not in segmenter.cut_all("南京市长江大桥")

    def test_suggest_freq_for_split(self, segmenter):
        assert segmenter.suggest_freq(("南京", "市")) == 10
        assert segmenter.dictionary.lookup("南京市") == 1405

        segmenter.suggest_freq(("南京", "市"), tune=True)
        assert segmenter.dictionary.lookup("南京市") == 10

    def test_suggest_freq_tune_under_write_lock(self, segmenter):
        """tune=True 时推算和写入都在写锁内，基于最新快照"""
        suggest = segmenter._suggest
        seen = []

        def record(segment, dictionary):
            seen.append((segmenter._write_lock.locked(), dictionary is segmenter.dictionary))
            return suggest(segment, dictionary)

        with mock.patch.object(segmenter, "_suggest", side_effect=record):
            assert segmenter.suggest_freq(("南京", "市"), tune=True) == 10
        assert seen == [(True, True)]
        assert segmenter.dictionary.lookup("南京市") == 10

    def test_suggest_freq_for_join(self, segmenter):
        assert segmenter.suggest_freq("长江大桥") >= 3
        assert segmenter.dictionary.lookup("长江大桥") == 3

    def test_load_userdict_lines(self, plain_segmenter):
        count = plain_segmenter.load_userdict(["杭研 5 nz", "网易杭研"])
        assert count == 2

        d = plain_segmenter.dictionary
        assert d.lookup("杭研") == 5
        assert d.tag("杭研") == "nz"
        assert d.lookup("网易杭研") == 1
        assert plain_segmenter.cut("网易杭研大厦") == ["网易杭研", "大厦"]

    def test_load_userdict_file(self, plain_segmenter, tmp_path):
        path = tmp_path / "user.txt"
        path.write_text("杭研 5\n", encoding="utf-8")
        plain_segmenter.load_userdict(str(path))
        assert plain_segmenter.cut("杭研大厦") == ["杭研", "大厦"]

    def test_bad_userdict_keeps_dictionary(self, plain_segmenter):
        before = plain_segmenter.dictionary
        with pytest.raises(DictionaryLoadError):
            plain_segmenter.load_userdict(["杭研 五 nz"])
        assert plain_segmenter.dictionary is before

    def test_concurrent_reads_during_writes(self, segmenter):
        """写入时读者看到的始终是完整的快照"""
        text = "小明硕士毕业于中国科学院计算所"
        stop = threading.Event()

        def writer():
            for i in range(50):
                segmenter.add_word(f"新词{i}", 10)
            stop.set()

        def reader(_):
            results = []
            while not stop.is_set():
                results.append("".join(segmenter.cut(text)))
            results.append("".join(segmenter.cut(text)))
            return results

        with ThreadPoolExecutor(max_workers=5) as pool:
            futures = [pool.submit(reader, n) for n in range(4)]
            pool.submit(writer).result()
            for future in futures:
                assert all(r == text for r in future.result())

        assert segmenter.dictionary.lookup("新词49") == 10


class TestCreateSegmenter:
    """按配置创建分词器"""

    def test_bundled_dictionary(self):
        seg = create_segmenter(SegmenterConfig())
        assert seg.cut("我来到北京清华大学") == ["我", "来到", "北京", "清华大学"]
        assert seg.cut("南京市长江大桥") == ["南京市", "长江大桥"]

    def test_missing_dictionary(self, tmp_path):
        with pytest.raises(DictionaryLoadError):
            create_segmenter(SegmenterConfig(dict_path=str(tmp_path / "missing.txt")))

    def test_bad_hmm_degrades(self, tmp_path):
        bad = tmp_path / "hmm.json"
        bad.write_text("not json", encoding="utf-8")
        seg = create_segmenter(SegmenterConfig(dict_path=None, hmm_path=str(bad)))
        assert not seg.hmm_enabled
        assert seg.cut("杭研") == ["杭", "研"]

    @pytest.mark.parametrize("content", [
        '{"start": [0, 0, 0, 0], "trans": {}, "emit": {}}',
        '{"start": "BEMS", "trans": {}, "emit": {}}',
        '{"start": {"B": 0, "M": 0, "E": 0, "S": 0}, "trans": {"B": [1]}, "emit": {}}',
        '{"start": {"B": 0, "M": 0, "E": 0, "S": 0}, "trans": {}, "emit": "杭研"}',
    ])
    def test_wrong_typed_hmm_tables_degrade(self, tmp_path, content):
        """概率表类型不对同样只关闭 HMM，不影响初始化"""
        bad = tmp_path / "hmm.json"
        bad.write_text(content, encoding="utf-8")
        seg = create_segmenter(SegmenterConfig(dict_path=None, hmm_path=str(bad)))
        assert not seg.hmm_enabled
        assert seg.cut("杭研") == ["杭", "研"]

    def test_unknown_log_level_falls_back(self):
        seg = create_segmenter(SegmenterConfig(dict_path=None, log_level="VERBOSE"))
        assert seg.cut("杭研") == ["杭", "研"]
        assert resolve_level("VERBOSE") == logging.INFO
        assert resolve_level("debug") == logging.DEBUG

    def test_hmm_from_file(self, hmm_params, tmp_path):
        from fenci.engine import save_hmm_parameters

        path = tmp_path / "hmm.json"
        save_hmm_parameters(hmm_params, path)
        seg = create_segmenter(SegmenterConfig(dict_path=None, hmm_path=str(path)))
        assert seg.hmm_enabled
        assert seg.cut("杭研") == ["杭研"]

    def test_user_dict(self, tmp_path):
        path = tmp_path / "user.txt"
        path.write_text("杭研 5\n", encoding="utf-8")
        seg = create_segmenter(SegmenterConfig(dict_path=None), user_dict=str(path))
        assert seg.cut("杭研") == ["杭研"]
