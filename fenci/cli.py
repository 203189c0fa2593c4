"""
FenCi 命令行工具
"""

import argparse
import sys

from fenci.engine.errors import FenciError


def _add_engine_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("text", help="待切分文本（'-' 表示从标准输入逐行读取）")
    parser.add_argument("--dict", dest="dict_path", help="词典路径 (默认: 内置示例词典)")
    parser.add_argument("--hmm", dest="hmm_path", help="HMM 参数路径 (.json 或 hmm_model 文本)")
    parser.add_argument("--user-dict", help="用户词典路径")
    parser.add_argument("--no-hmm", action="store_true", help="关闭未登录词识别")


def _build_segmenter(args):
    from fenci.engine import SegmenterConfig, create_segmenter

    config = SegmenterConfig.from_env()
    if args.dict_path:
        config.dict_path = args.dict_path
    if args.hmm_path:
        config.hmm_path = args.hmm_path
    return create_segmenter(config, user_dict=args.user_dict)


def _iter_texts(text: str):
    if text == "-":
        for line in sys.stdin:
            yield line.rstrip("\n")
    else:
        yield text


def main(argv=None):
    """命令行入口"""
    parser = argparse.ArgumentParser(
        prog="fenci",
        description="FenCi - 中文分词引擎",
    )

    subparsers = parser.add_subparsers(dest="command", help="可用命令")

    # cut 命令
    cut_parser = subparsers.add_parser("cut", help="分词")
    _add_engine_args(cut_parser)
    cut_parser.add_argument(
        "-m", "--mode", choices=["default", "all", "search"], default="default",
        help="切分模式 (默认: default)",
    )
    cut_parser.add_argument("-d", "--delimiter", default=" / ", help="输出分隔符 (默认: ' / ')")

    # tokenize 命令
    tok_parser = subparsers.add_parser("tokenize", help="分词并输出位置")
    _add_engine_args(tok_parser)
    tok_parser.add_argument(
        "-m", "--mode", choices=["default", "search"], default="default",
        help="切分模式 (默认: default)",
    )

    # train-hmm 命令
    train_parser = subparsers.add_parser("train-hmm", help="从分好词的语料训练 HMM 参数")
    train_parser.add_argument("corpus", help="语料路径（UTF-8，词之间以空白分隔）")
    train_parser.add_argument("-o", "--output", required=True, help="输出 JSON 路径")

    # server 命令
    server_parser = subparsers.add_parser("server", help="启动 API 服务")
    server_parser.add_argument("--host", default="0.0.0.0", help="绑定地址 (默认: 0.0.0.0)")
    server_parser.add_argument("--port", type=int, default=3000, help="端口 (默认: 3000)")

    # version 命令
    subparsers.add_parser("version", help="显示版本")

    args = parser.parse_args(argv)

    try:
        _run(args, parser)
    except FenciError as e:
        print(f"错误: {e}", file=sys.stderr)
        sys.exit(2)


def _run(args, parser):
    if args.command == "cut":
        segmenter = _build_segmenter(args)
        hmm = not args.no_hmm
        for text in _iter_texts(args.text):
            if args.mode == "all":
                words = segmenter.cut_all(text)
            elif args.mode == "search":
                words = segmenter.cut_for_search(text, hmm=hmm)
            else:
                words = segmenter.cut(text, hmm=hmm)
            print(args.delimiter.join(words))

    elif args.command == "tokenize":
        segmenter = _build_segmenter(args)
        for text in _iter_texts(args.text):
            for token in segmenter.tokenize(text, args.mode, hmm=not args.no_hmm):
                print(f"{token.word}\t{token.start}\t{token.end}")

    elif args.command == "train-hmm":
        from fenci.engine import HmmTrainer, save_hmm_parameters
        params = HmmTrainer().train_file(args.corpus)
        save_hmm_parameters(params, args.output)
        print(f"已保存: {args.output} (字表 {params.vocab_size})")

    elif args.command == "server":
        from fenci.api.server import main as server_main
        import os
        os.environ["HOST"] = args.host
        os.environ["PORT"] = str(args.port)
        server_main()

    elif args.command == "version":
        from fenci import __version__
        print(f"FenCi v{__version__}")

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
