import argparse
import asyncio
import sys
import time
from typing import List, Optional

from .assembler import extract_from_html
from .config import DEFAULT_SETTINGS
from .exceptions import PageLoadError
from .formula_converter import load_math_converter
from .playwright_helpers import fetch_page_html, is_url, local_path_to_url
from setup_logger import add_file_handler, set_stream_level, setup_logger
from utils.file_handler import save_text

logger = setup_logger("question_extractor")

# 抽出処理に関わるロガー。--debug / --log-file をまとめて反映する
_MODULE_LOGGERS = (
    "question_extractor",
    "question_extractor_config",
    "assembler",
    "tree_extractor",
    "formula_converter",
    "playwright_helpers",
    "file_handler",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quiz-extract",
        description="""
        Moodle の小テスト受験ページから問題文 (数式は LaTeX) を抽出します。
        """
    )
    parser.add_argument("source", help="ページのURL、または保存済みのHTMLファイル")
    parser.add_argument(
        "--render",
        action="store_true",
        help="ローカルファイルもヘッドレスブラウザでレンダリングしてから抽出する"
    )
    parser.add_argument("--output", help="抽出結果を保存するファイルパス")
    parser.add_argument("--log-file", help="ログを出力するファイルパス")
    parser.add_argument("--debug", action="store_true", help="DEBUG レベルのログを表示する")
    return parser


def _configure_logging(log_file: Optional[str], debug: bool) -> None:
    for name in _MODULE_LOGGERS:
        module_logger = setup_logger(name)
        if debug:
            set_stream_level(module_logger, "DEBUG")
        if log_file:
            add_file_handler(module_logger, log_file)


def load_source_html(source: str, render: bool = False) -> str:
    """
    抽出元のHTMLを取得します。URL はブラウザでレンダリングし、ローカルファイルはそのまま読みます。

    Raises:
        PageLoadError: 読み込みに失敗した場合
    """
    if is_url(source):
        return asyncio.run(fetch_page_html(source, selector=DEFAULT_SETTINGS.question_selector))

    if render:
        return asyncio.run(fetch_page_html(local_path_to_url(source), selector=DEFAULT_SETTINGS.question_selector))

    try:
        with open(source, 'r', encoding='utf-8') as f:
            return f.read()
    except OSError as e:
        raise PageLoadError(source, e.strerror or str(e)) from e


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_file, args.debug)

    start_time = time.time()
    logger.info(f"抽出を開始します: {args.source}")

    try:
        html = load_source_html(args.source, render=args.render)
    except PageLoadError as e:
        logger.error(str(e))
        return 1

    converter = load_math_converter()
    result = extract_from_html(html, converter)

    if not result:
        logger.warning("問題は抽出されませんでした。")

    print(result)

    if args.output:
        save_text(result, args.source, path=args.output)

    logger.info(f"総処理時間: {time.time() - start_time:.2f} 秒")
    return 0


if __name__ == "__main__":
    sys.exit(main())
