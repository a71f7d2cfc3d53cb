import logging
import copy
import sys
import os
from logging.handlers import RotatingFileHandler

# カスタムログレベル
NOTICE_LEVEL = logging.INFO + 2

logging.addLevelName(NOTICE_LEVEL, "NOTICE")

def notice(self, message, *args, **kwargs):
    if self.isEnabledFor(NOTICE_LEVEL):
        self._log(NOTICE_LEVEL, message, args, **kwargs)

logging.Logger.notice = notice


class ColoredFormatter(logging.Formatter):
    """レベル名をANSIカラーで装飾するフォーマッター"""
    COLORS = {
        "DEBUG": "\033[0;36m",  # CYAN
        "NOTICE": "\033[1;34m",  # LIGHT BLUE
        "INFO": "\033[0;32m",  # GREEN
        "WARNING": "\033[0;33m",  # YELLOW
        "ERROR": "\033[0;31m",  # RED
        "CRITICAL": "\033[0;37;41m",  # WHITE ON RED
        "RESET": "\033[0m",
    }

    def format(self, record):
        # 他のハンドラーに色付きのレベル名が漏れないようコピーに対して装飾する
        colored_record = copy.copy(record)
        levelname = colored_record.levelname
        seq = self.COLORS.get(levelname, self.COLORS["RESET"])
        colored_record.levelname = f"{seq}{levelname}{self.COLORS['RESET']}"
        return super().format(colored_record)


def setup_logger(
    name: str,
    level: str = "INFO",
    use_colors: bool = True,
    log_file: str = None,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
) -> logging.Logger:
    """
    抽出処理で共通に使うロガーを返します。

    標準出力には ``level`` 以上、``log_file`` を指定した場合はファイルに DEBUG 以上を出力します。
    同じ名前で二度呼ばれてもハンドラーは追加しません。

    Args:
        name (str): ロガー名
        level (str): 標準出力のログレベル (デフォルト: "INFO")
        use_colors (bool): ANSIカラーを有効化するか (デフォルト: True)
        log_file (str, optional): ファイル出力のパス (デフォルト: None)
        max_bytes (int, optional): 1ファイルの最大サイズ (デフォルト: 5MB)
        backup_count (int, optional): ログの世代数 (デフォルト: 3)

    Returns:
        logging.Logger: 設定済みのロガー
    """
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    # NOTICE のような追加レベルも名前で解決できる
    stream_level = logging.getLevelName(level.upper())
    if not isinstance(stream_level, int):
        stream_level = logging.INFO

    if logger.handlers:
        return logger

    log_format = "[%(filename)s:%(lineno)d %(funcName)s]%(asctime)s[%(levelname)s] - %(message)s"
    date_format = "%H:%M:%S"

    # 結果本文は stdout に出すため、ログは stderr に分ける
    stream_handler = logging.StreamHandler(sys.stderr)
    formatter = ColoredFormatter(log_format, datefmt=date_format) if use_colors else logging.Formatter(log_format, datefmt=date_format)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(stream_level)
    logger.addHandler(stream_handler)

    if log_file:
        add_file_handler(logger, log_file, max_bytes=max_bytes, backup_count=backup_count)

    return logger


def add_file_handler(
    logger: logging.Logger,
    log_file: str,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> None:
    """既存のロガーにローテーション付きのファイル出力を追加します。"""
    log_file = os.path.abspath(log_file)
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and handler.baseFilename == log_file:
            return

    os.makedirs(os.path.dirname(log_file), exist_ok=True)
    file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(
        "[%(filename)s:%(lineno)d %(funcName)s]%(asctime)s[%(levelname)s] - %(message)s",
        datefmt="%H:%M:%S",
    ))
    file_handler.setLevel(logging.DEBUG)
    logger.addHandler(file_handler)


def set_stream_level(logger: logging.Logger, level: str) -> None:
    """標準エラー出力ハンドラーのレベルだけを変更します (--debug 用)。"""
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        return
    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, RotatingFileHandler):
            handler.setLevel(value)
