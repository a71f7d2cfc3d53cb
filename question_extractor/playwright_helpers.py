import os
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse

from playwright.async_api import async_playwright, Page, Browser, TimeoutError as PlaywrightTimeoutError

from .config import LOADER_CONFIG, DEFAULT_SETTINGS
from .exceptions import PageLoadError
from setup_logger import setup_logger

logger = setup_logger("playwright_helpers")


def is_url(source: str) -> bool:
    """http(s) / file スキームのURLかどうか"""
    parsed = urlparse(source)
    return parsed.scheme in ("http", "https", "file") and bool(parsed.netloc or parsed.path)


def local_path_to_url(path: str) -> str:
    """ローカルのHTMLファイルパスを file:// URL に変換します。"""
    return Path(os.path.abspath(path)).as_uri()


async def wait_for_page_ready(page: Page,
                              selector: str,
                              timeout: int = 10000,
                              fallback_delay: int = 2000,
                              ) -> bool:
    """
    問題コンテナが現れるまで一度だけ待機します。
    タイムアウトした場合は固定時間待ってから処理を続けます。

    Returns:
        bool: セレクタが見つかった場合は True
    """
    try:
        await page.wait_for_selector(selector, state='attached', timeout=timeout)
        return True
    except PlaywrightTimeoutError:
        logger.warning(f"'{selector}' が {timeout}ms 以内に見つかりませんでした。{fallback_delay}ms 待機して続行します。")
        await page.wait_for_timeout(fallback_delay)
        return False


async def setup_page(url: str,
                     browser: Browser,
                     loader_config: Optional[Dict] = None,
                     selector: str = DEFAULT_SETTINGS.question_selector,
                     ) -> Page:
    """
    指定されたURLのページを準備し、Pageオブジェクトを返します。
    DOMの読み込み、ネットワークの安定、問題コンテナの出現を待ちます。

    Raises:
        PageLoadError: ページに移動できなかった場合
    """
    config = {**LOADER_CONFIG, **(loader_config or {})}
    context = await browser.new_context(viewport=config["viewport"])
    page = await context.new_page()
    try:
        await page.goto(url, wait_until='domcontentloaded', timeout=config["goto_timeout"])
    except Exception as e:
        await context.close()
        raise PageLoadError(url, str(e)) from e

    try:
        await page.wait_for_load_state('networkidle', timeout=config["networkidle_timeout"])
    except PlaywrightTimeoutError:
        logger.warning(f"ネットワークが{config['networkidle_timeout']}ms以内にアイドル状態になりませんでした。処理を続行します。")

    await wait_for_page_ready(page, selector, config["ready_timeout"], config["fallback_delay"])
    return page


async def fetch_page_html(url: str,
                          loader_config: Optional[Dict] = None,
                          selector: str = DEFAULT_SETTINGS.question_selector,
                          ) -> str:
    """
    ヘッドレスブラウザでページをレンダリングし、その時点のHTMLを返します。
    ブラウザの起動と終了を内包します。
    """
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            page = await setup_page(url, browser, loader_config, selector)
            html = await page.content()
            logger.info(f"ページを取得しました: {url} ({len(html)} 文字)")
            return html
        except PageLoadError:
            raise
        except Exception as e:
            raise PageLoadError(url, str(e)) from e
        finally:
            await browser.close()
