class ExtractionError(Exception):
    """問題抽出処理の基底例外。"""


class PageLoadError(ExtractionError):
    """ページの読み込み・レンダリングに失敗した場合に送出されます。"""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        message = f"ページを読み込めませんでした: {source}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
