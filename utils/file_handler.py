import os
import util_str
from setup_logger import setup_logger

logger = setup_logger("file_handler")

def save_text(text : str,
              source : str,
              directory="output",
              path : str = None):
    """
    抽出したテキストをUTF-8のテキストファイルとして保存する

    Args:
        text (str): 保存するテキスト
        source (str): 抽出元のURLまたはファイルパス (path 未指定時のファイル名に使用)
        directory (str): 保存先ディレクトリ (path 未指定時)
        path (str, optional): 保存先のファイルパス
    Return:
        str: 保存したファイルのパス
    """
    if path is None:
        path = os.path.join(directory, util_str.make_output_filename(source))

    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)
        if text and not text.endswith("\n"):
            f.write("\n")

    logger.info(f"抽出結果を保存しました: {path}")
    return path
