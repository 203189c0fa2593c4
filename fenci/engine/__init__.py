from typing import Optional

from .config import SegmenterConfig, Token, TokenizeMode, DEFAULT_DICT_PATH
from .errors import FenciError, DictionaryLoadError, HmmParameterError, InvalidInputError
from .dictionary import Dictionary, load_dictionary, load_user_dict, parse_user_dict_lines
from .dag import build_dag, dag_edges
from .route import calc_route, find_best_path
from .hmm import (
    HmmParameters,
    HmmRecognizer,
    load_hmm_parameters,
    save_hmm_parameters,
    parse_hmm_model,
)
from .trainer import HmmTrainer
from .text import split_blocks, validate_sentence
from .core import Segmenter
from .logging import setup_logging, resolve_level, get_logger, get_api_logger, get_engine_logger, log_execution_time

logger = get_engine_logger()


@log_execution_time(logger)
def create_segmenter(
    config: Optional[SegmenterConfig] = None,
    user_dict: Optional[str] = None,
) -> Segmenter:
    """
    创建分词器

    Args:
        config: 分词器配置（词典、HMM 参数路径等）
        user_dict: 用户词典路径（可选）

    Returns:
        Segmenter 实例

    Raises:
        DictionaryLoadError: 词典不可用时不会创建半初始化的分词器
    """
    config = config or SegmenterConfig()
    logger.setLevel(resolve_level(config.log_level))

    dictionary = load_dictionary(config.dict_path) if config.dict_path else Dictionary.empty()

    hmm = None
    if config.enable_hmm and config.hmm_path:
        try:
            hmm = load_hmm_parameters(config.hmm_path)
        except HmmParameterError as e:
            # HMM 只是增强，参数坏了就退化为单字输出
            logger.warning(f"HMM 参数无效，未登录词识别已关闭: {e}")

    segmenter = Segmenter(dictionary, hmm, config)
    if user_dict:
        segmenter.load_userdict(user_dict)

    logger.info(
        f"分词器就绪 | 词典 {len(segmenter.dictionary)} 条"
        f" | HMM: {'✓' if segmenter.hmm_enabled else '✗'}"
    )
    return segmenter


__all__ = [
    # 分词器
    'Segmenter',
    'create_segmenter',
    'SegmenterConfig',
    'Token',
    'TokenizeMode',
    'DEFAULT_DICT_PATH',
    # 异常
    'FenciError',
    'DictionaryLoadError',
    'HmmParameterError',
    'InvalidInputError',
    # 词典
    'Dictionary',
    'load_dictionary',
    'load_user_dict',
    'parse_user_dict_lines',
    # 词图与路径
    'build_dag',
    'dag_edges',
    'calc_route',
    'find_best_path',
    # HMM
    'HmmParameters',
    'HmmRecognizer',
    'HmmTrainer',
    'load_hmm_parameters',
    'save_hmm_parameters',
    'parse_hmm_model',
    # 文本
    'split_blocks',
    'validate_sentence',
    # 日志
    'setup_logging',
    'resolve_level',
    'get_logger',
    'get_api_logger',
    'get_engine_logger',
]
