# +----------------------------------------------------------------
# + source name helpers
# +----------------------------------------------------------------
import os
import re
from urllib.parse import urlparse

def get_domain(url):
    parsed_url = urlparse(url)
    domain = parsed_url.netloc
    return domain

def make_output_filename(source: str, extension: str = ".txt") -> str:
    """
    URLまたはファイルパスから保存用のファイル名を作ります。

    - URL の場合: ``<ドメイン>_<クエリの attempt/page>`` を元にした名前
    - ファイルパスの場合: 拡張子を除いたファイル名

    Args:
        source (str): 抽出元のURLまたはファイルパス。
        extension (str): 付与する拡張子 (デフォルト: ".txt")

    Returns:
        str: ファイル名として使える文字列。
    """
    parsed_url = urlparse(source)
    if parsed_url.scheme in ("http", "https") and parsed_url.netloc:
        stem = get_domain(source)
        # attempt=123&page=2 のようなクエリを名前に含める
        params = re.findall(r"(attempt|page|cmid)=(\d+)", parsed_url.query)
        if params:
            stem += "_" + "_".join(f"{key}{value}" for key, value in params)
    else:
        path = parsed_url.path if parsed_url.scheme == "file" else source
        stem = os.path.splitext(os.path.basename(path))[0] or "questions"

    stem = re.sub(r"[^\w.-]+", "_", stem).strip("_.") or "questions"
    return stem + extension
