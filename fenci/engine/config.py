import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

# 随包附带的示例词典
DEFAULT_DICT_PATH = Path(__file__).resolve().parent.parent / 'data' / 'dict.txt'


@dataclass
class SegmenterConfig:
    """分词器配置"""
    dict_path: Optional[str] = str(DEFAULT_DICT_PATH)
    hmm_path: Optional[str] = None
    enable_hmm: bool = True           # 未登录词识别
    prefer_longer: bool = True        # 得分相同时优先长词
    unknown_word_freq: float = 1.0    # 未登录单字的频率下限
    split_blocks: bool = True         # 先按汉字/非汉字切块
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "SegmenterConfig":
        """从环境变量读取配置（FENCI_DICT / FENCI_HMM / FENCI_LOG_LEVEL）"""
        config = cls()
        if os.environ.get('FENCI_DICT'):
            config.dict_path = os.environ['FENCI_DICT']
        if os.environ.get('FENCI_HMM'):
            config.hmm_path = os.environ['FENCI_HMM']
        if os.environ.get('FENCI_LOG_LEVEL'):
            config.log_level = os.environ['FENCI_LOG_LEVEL']
        return config


class TokenizeMode(str, Enum):
    """切分模式"""
    DEFAULT = "default"   # 精确模式
    SEARCH = "search"     # 搜索引擎模式


@dataclass(frozen=True)
class Token:
    """带位置的切分结果（字符偏移，左闭右开）"""
    word: str
    start: int
    end: int
