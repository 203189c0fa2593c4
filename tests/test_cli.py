"""
命令行测试
"""

import io

import pytest

from fenci import __version__
from fenci.cli import main
from fenci.engine import load_hmm_parameters


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FENCI_DICT", "FENCI_HMM", "FENCI_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestCutCommand:
    def test_default_mode(self, capsys):
        main(["cut", "南京市长江大桥"])
        assert capsys.readouterr().out == "南京市 / 长江大桥\n"

    def test_full_mode_with_delimiter(self, capsys):
        main(["cut", "-m", "all", "-d", ",", "长江大桥"])
        assert capsys.readouterr().out.strip().split(",") == ["长", "长江", "长江大桥", "江", "大", "大桥", "桥"]

    def test_stdin(self, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("你好世界\n南京市长江大桥\n"))
        main(["cut", "-"])
        assert capsys.readouterr().out.splitlines() == ["你好 / 世界", "南京市 / 长江大桥"]

    def test_custom_dictionary(self, capsys, tmp_path):
        path = tmp_path / "dict.txt"
        path.write_text("杭研 5\n大厦 3\n", encoding="utf-8")
        main(["cut", "--dict", str(path), "杭研大厦"])
        assert capsys.readouterr().out == "杭研 / 大厦\n"

    def test_user_dict(self, capsys, tmp_path):
        path = tmp_path / "user.txt"
        path.write_text("杭研 100\n", encoding="utf-8")
        main(["cut", "--user-dict", str(path), "杭研"])
        assert capsys.readouterr().out == "杭研\n"

    def test_bad_dictionary_exits(self, capsys, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("杭研 很多\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main(["cut", "--dict", str(path), "杭研"])
        assert exc_info.value.code == 2
        assert "错误" in capsys.readouterr().err


class TestTokenizeCommand:
    def test_offsets(self, capsys):
        main(["tokenize", "你好世界"])
        assert capsys.readouterr().out.splitlines() == ["你好\t0\t2", "世界\t2\t4"]


class TestTrainCommand:
    def test_train_and_use(self, capsys, tmp_path):
        corpus = tmp_path / "corpus.txt"
        corpus.write_text("我 爱 北京\n北京 欢迎 你\n", encoding="utf-8")
        output = tmp_path / "hmm.json"

        main(["train-hmm", str(corpus), "-o", str(output)])
        assert "已保存" in capsys.readouterr().out
        assert load_hmm_parameters(output).vocab_size == 7


class TestMisc:
    def test_version(self, capsys):
        main(["version"])
        assert __version__ in capsys.readouterr().out

    def test_no_command(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
