"""
FenCi - 中文分词引擎

词图 + 动态规划求最优切分，HMM 识别未登录词，
支持精确模式、全模式、搜索引擎模式。
"""

__version__ = "0.1.0"

from fenci.engine import (
    Segmenter,
    create_segmenter,
    SegmenterConfig,
    Token,
    TokenizeMode,
    FenciError,
    DictionaryLoadError,
    HmmParameterError,
    InvalidInputError,
    Dictionary,
    load_dictionary,
    HmmParameters,
    HmmTrainer,
    load_hmm_parameters,
    save_hmm_parameters,
)

__all__ = [
    "__version__",
    # 分词器
    "Segmenter",
    "create_segmenter",
    "SegmenterConfig",
    "Token",
    "TokenizeMode",
    # 异常
    "FenciError",
    "DictionaryLoadError",
    "HmmParameterError",
    "InvalidInputError",
    # 词典
    "Dictionary",
    "load_dictionary",
    # HMM
    "HmmParameters",
    "HmmTrainer",
    "load_hmm_parameters",
    "save_hmm_parameters",
]
