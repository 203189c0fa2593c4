"""
测试公共夹具：合成词典与 HMM 参数
"""

import pytest

from fenci.engine import Dictionary, HmmParameters, Segmenter, SegmenterConfig
from fenci.engine.hmm import MIN_FLOAT

WORDS = [
    # 单字
    ("的", 318825), ("了", 883634), ("是", 796991), ("我", 328841), ("他", 238046),
    ("你", 38425), ("好", 63209), ("世", 4256), ("界", 2160), ("于", 89215),
    ("南", 10919), ("京", 2823), ("市", 13765), ("长", 25008), ("江", 8023),
    ("大", 144099), ("桥", 2702), ("中", 243191), ("国", 43271),
    # 多字词
    ("你好", 2261), ("世界", 34074),
    ("南京", 2691), ("南京市", 1405), ("京市", 6), ("市长", 1775),
    ("长江", 3002), ("长江大桥", 3), ("大桥", 2916),
    ("来到", 4207), ("网易", 10), ("大厦", 1561),
    ("小明", 13), ("硕士", 1281), ("毕业", 4390),
    ("中国", 140036), ("科学", 15406), ("学院", 7424), ("科学院", 925),
    ("中国科学院", 2000), ("计算", 3863), ("计算所", 3),
    ("北京", 34488), ("清华", 443), ("清华大学", 260), ("大学", 20025),
]

# 只认识 "杭研" 这一个新词的 HMM：B 发射 杭，E 发射 研
HMM_START = {"B": -0.26268660809250016, "E": MIN_FLOAT, "M": MIN_FLOAT, "S": -1.4652633398537678}
HMM_TRANS = {
    "B": {"E": -0.510825623765990, "M": -0.916290731874155},
    "E": {"B": -0.5897149736854513, "S": -0.8085250474669937},
    "M": {"E": -0.33344856811948514, "M": -1.2603623820268226},
    "S": {"B": -0.7211965654669841, "S": -0.6658631448798212},
}
HMM_EMIT = {
    "B": {"杭": -1.0, "龘": -1.0},
    "M": {"靐": -1.0},
    "E": {"研": -1.0, "齉": -1.0},
    "S": {"的": -1.0, "啊": -1.0},
}


@pytest.fixture
def dictionary():
    return Dictionary(WORDS)


@pytest.fixture
def hmm_params():
    return HmmParameters(start=HMM_START, trans=HMM_TRANS, emit=HMM_EMIT, emit_fallback=-20.0)


@pytest.fixture
def segmenter(dictionary, hmm_params):
    return Segmenter(dictionary, hmm_params, SegmenterConfig(dict_path=None))


@pytest.fixture
def plain_segmenter(dictionary):
    """不带 HMM 参数的分词器"""
    return Segmenter(dictionary, None, SegmenterConfig(dict_path=None))
