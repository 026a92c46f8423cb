"""Unit tests for src.domain.link_resolver."""

from urllib.parse import parse_qs, quote, urlsplit

import pytest

from src.domain.link_resolver import (
    Interstitial,
    Redirect,
    ResolveFailure,
    is_coupon_path,
    is_in_app_browser,
    resolve,
)

TIKTOK_APP_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Mobile/15E148 musical_ly_32.5.0 JsSdk/2.0 NetType/WIFI "
    "Channel/App Store ByteLocale/en Region/TH BytedanceWebview/d8a21c6"
)
SAFARI_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

COUPON = "https://www.tiktok.com/coupon/voucher.html?product_id=123&hide_status_bar=1&trans_status_bar=1"


def query(url: str) -> dict:
    return parse_qs(urlsplit(url).query, keep_blank_values=True)


class TestFallbacks:

    @pytest.mark.parametrize("target", [None, ""])
    def test_missing_target_goes_home(self, target):
        result = resolve(target)
        assert result == Redirect("/", failure=ResolveFailure.MISSING_TARGET)

    @pytest.mark.parametrize("target", [
        "javascript:alert(1)",
        "JavaScript:alert(document.cookie)",
        "data:text/html,<script>alert(1)</script>",
        "https://exa mple.com/",
        "https://example.com:99999/",
        "   ",
    ])
    def test_unusable_targets_go_home(self, target):
        result = resolve(target)
        assert isinstance(result, Redirect)
        assert result.location == "/"
        assert result.failure is not None

    def test_javascript_never_reaches_location(self):
        result = resolve(quote("javascript:alert(1)", safe=""))
        assert result.location == "/"
        assert "javascript" not in result.location


class TestPlainRedirects:

    @pytest.mark.parametrize("url", [
        "https://shopee.co.th/product/123?ref=abc",
        "http://example.com/a/b",
        "https://s.lazada.co.th/s.abc",
        "https://www.youtube.com/watch?v=xyz&t=10",
    ])
    def test_non_tiktok_unchanged(self, url):
        assert resolve(url) == Redirect(url)

    def test_schemeless_gets_https(self):
        assert resolve("example.com/page").location == "https://example.com/page"

    def test_protocol_relative_gets_https(self):
        assert resolve("//example.com/page").location == "https://example.com/page"

    def test_whitespace_trimmed(self):
        assert resolve("  https://example.com/x  ").location == "https://example.com/x"

    def test_encoded_target_decoded(self):
        url = "https://shopee.co.th/item?id=1&src=hub"
        assert resolve(quote(url, safe="")).location == url

    def test_malformed_escape_kept_raw(self):
        url = "https://example.com/%E0%A4%A"
        assert resolve(url).location == url

    def test_lookalike_host_not_rewritten(self):
        url = "https://nottiktok.com/voucher?hide_nav_bar=1"
        assert resolve(url, TIKTOK_APP_UA) == Redirect(url)


class TestTikTokRewrite:

    @pytest.mark.parametrize("url", [
        "https://www.tiktok.com/@shop/video/1?hide_nav_bar=1&lang=th",
        "https://WWW.TikTok.COM/@shop/video/1?hide_status_bar=1&trans_status_bar=0",
        "https://tiktok.com/t/abc",
        "https://vt.tiktok.com/ZSabc/",
        "https://shop.tiktok.com/view/product/9?use_land_page=0",
    ])
    def test_land_page_added_and_bar_flags_removed(self, url):
        result = resolve(url, SAFARI_UA)
        assert isinstance(result, Redirect)
        params = query(result.location)
        assert params["use_land_page"] == ["1"]
        for flag in ("hide_nav_bar", "hide_status_bar", "trans_status_bar"):
            assert flag not in params

    def test_other_params_kept_in_order(self):
        result = resolve("https://www.tiktok.com/v?a=1&hide_nav_bar=1&b=2")
        assert urlsplit(result.location).query == "a=1&b=2&use_land_page=1"

    def test_host_and_path_kept(self):
        result = resolve("https://www.tiktok.com/@shop/video/1")
        parts = urlsplit(result.location)
        assert parts.netloc == "www.tiktok.com"
        assert parts.path == "/@shop/video/1"


class TestCouponPages:

    @pytest.mark.parametrize("ua", [SAFARI_UA, CHROME_UA, ""])
    def test_regular_browser_redirected(self, ua):
        result = resolve(COUPON, ua)
        assert isinstance(result, Redirect)
        assert result.location == "https://www.tiktok.com/coupon/voucher.html?product_id=123&use_land_page=1"

    def test_in_app_gets_interstitial(self):
        result = resolve(COUPON, TIKTOK_APP_UA)
        assert isinstance(result, Interstitial)
        assert result.coupon_url == "https://www.tiktok.com/coupon/voucher.html?product_id=123&use_land_page=1"
        assert result.product_url == "https://www.tiktok.com/view/product/123?scene=pdp&use_land_page=1"

    def test_product_id_camel_case_and_chain_key(self):
        url = "https://www.tiktok.com/linkshare/coupon?productId=777&chain_key=ck_1"
        result = resolve(url, "Instagram 309.0.0.28.110")
        assert result.product_url == "https://www.tiktok.com/view/product/777?scene=pdp&use_land_page=1&chain_key=ck_1"

    def test_without_product_id(self):
        result = resolve("https://www.tiktok.com/voucher/abc", TIKTOK_APP_UA)
        assert isinstance(result, Interstitial)
        assert result.product_url is None

    @pytest.mark.parametrize("path,expected", [
        ("/coupon/voucher.html", True),
        ("/VOUCHER/x", True),
        ("/t/LinkShare", True),
        ("/@shop/video/1", False),
        ("", False),
    ])
    def test_is_coupon_path(self, path, expected):
        assert is_coupon_path(path) is expected


@pytest.mark.parametrize("ua,expected", [
    (TIKTOK_APP_UA, True),
    ("Mozilla/5.0 (iPhone) Mobile/15E148 Instagram 309.0.0.28.110 (iPhone14,2; iOS 17_0)", True),
    ("Mozilla/5.0 (iPhone) Mobile/15E148 [FBAN/FBIOS;FBAV/435.0.0.36.111;FBBV/5]", True),
    ("Mozilla/5.0 (Linux; Android 14) Chrome/119.0 Mobile Safari/537.36 [FB_IAB/FB4A;FBAV/440.0.0.31.105;]", True),
    ("Mozilla/5.0 (iPhone) AppleWebKit/605.1.15 Mobile/15E148 Safari Line/13.18.0", True),
    ("Mozilla/5.0 (iPhone) Mobile/15E148 Twitter for iPhone/10.10", True),
    (SAFARI_UA, False),
    (CHROME_UA, False),
    ("", False),
    (None, False),
])
def test_is_in_app_browser(ua, expected):
    assert is_in_app_browser(ua) is expected
