"""
HTML Pages - Review Hub
=======================

Server-rendered pages: public review grid, admin login, admin dashboard and
the open-in-browser interstitial served by `/go`. All dynamic values go
through `esc()`.
"""

import json
from datetime import datetime, timezone
from html import escape
from typing import List, Optional
from urllib.parse import quote, urlencode

from src.domain.link_resolver import Interstitial
from src.domain.review_input import PLATFORMS, strip_media
from src.infrastructure.persistence import Review


def esc(value) -> str:
    return escape("" if value is None else str(value), quote=True)


def go_link(url: str) -> str:
    return "/go?u=" + quote(url, safe="")


# ══════════════════════════════════════════════════════════════════
#  SHARED CSS: reused across all pages
# ══════════════════════════════════════════════════════════════════

SHARED_CSS = """
    :root {
        --bg-dark: #0b0b10;
        --bg-card: rgba(255,255,255,0.04);
        --border: rgba(255,255,255,0.08);
        --border-hover: rgba(16,185,129,0.45);
        --text: #e4e4e7;
        --text-muted: #71717a;
        --accent-1: #10b981;
        --accent-2: #22d3ee;
        --gradient: linear-gradient(135deg, #10b981 0%, #22d3ee 100%);
    }

    * { margin: 0; padding: 0; box-sizing: border-box; }

    body {
        font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif;
        background: var(--bg-dark);
        min-height: 100vh;
        color: var(--text);
    }

    @keyframes fadeInUp {
        from { opacity: 0; transform: translateY(12px); }
        to   { opacity: 1; transform: translateY(0); }
    }

    .card {
        background: var(--bg-card);
        border: 1px solid var(--border);
        border-radius: 16px;
        padding: 20px;
        transition: border-color 0.3s ease;
        animation: fadeInUp 0.4s ease-out both;
    }
    .card:hover { border-color: var(--border-hover); }

    .btn {
        background: var(--gradient);
        color: #fff;
        border: none;
        padding: 11px 22px;
        border-radius: 10px;
        font-weight: 600;
        font-size: 14px;
        cursor: pointer;
        text-decoration: none;
        display: inline-flex;
        align-items: center;
        justify-content: center;
        gap: 8px;
        font-family: inherit;
    }
    .btn:hover { opacity: 0.9; }
    .btn-ghost { background: var(--bg-card); border: 1px solid var(--border); color: var(--text); }
    .btn[aria-disabled="true"], .btn:disabled { opacity: 0.35; cursor: not-allowed; pointer-events: none; }

    .badge {
        padding: 3px 9px;
        border-radius: 6px;
        font-size: 10px;
        font-weight: 600;
        text-transform: uppercase;
        letter-spacing: 0.4px;
        background: rgba(255,255,255,0.08);
    }
    .badge.tiktok  { background: rgba(254,44,85,0.15); color: #fe2c55; }
    .badge.youtube { background: rgba(239,68,68,0.15); color: #f87171; }
    .badge.reels   { background: rgba(168,85,247,0.15); color: #c084fc; }

    input[type="text"], input[type="password"], input[type="search"],
    input[type="datetime-local"], select, textarea {
        background: rgba(255,255,255,0.05);
        border: 1px solid var(--border);
        padding: 11px 14px;
        border-radius: 10px;
        color: var(--text);
        font-size: 14px;
        font-family: inherit;
        width: 100%;
    }
    input:focus, select:focus { outline: none; border-color: var(--accent-1); }

    .alert {
        padding: 12px 18px;
        border-radius: 12px;
        margin-bottom: 18px;
        font-size: 14px;
        text-align: center;
    }
    .alert-info  { background: rgba(16,185,129,0.1); border: 1px solid rgba(16,185,129,0.25); color: #34d399; }
    .alert-error { background: rgba(248,113,113,0.1); border: 1px solid rgba(248,113,113,0.25); color: #f87171; }

    a { color: var(--accent-2); text-decoration: none; }
    code { background: rgba(255,255,255,0.06); padding: 2px 7px; border-radius: 5px; font-size: 12px; }
"""


def _page(title: str, body: str, extra_css: str = "") -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{esc(title)}</title>
    <style>
        {SHARED_CSS}
        {extra_css}
    </style>
</head>
<body>
{body}
</body>
</html>"""


# ══════════════════════════════════════════════════════════════════
#  PUBLIC GRID
# ══════════════════════════════════════════════════════════════════

def merchant_info(url: str) -> tuple:
    """(label, css class) for the affiliate button."""
    u = (url or "").lower()
    if "shopee" in u:
        return "Shopee", "m-shopee"
    if "lazada" in u or "lzd.co" in u:
        return "Lazada", "m-lazada"
    if "ikea" in u:
        return "IKEA", "m-ikea"
    if "tiktok" in u or "ttshop" in u:
        return "TikTok", "m-tiktok"
    return "Go to shop", "m-default"


def _stars(rating: Optional[float]) -> str:
    if rating is None:
        return ""
    value = max(0.0, min(5.0, rating))
    full = int(round(value))
    return f'<span class="stars" title="{value:.1f}/5">{"★" * full}{"☆" * (5 - full)}</span>'


def _tag_href(tag: str, q: str, active_tags: List[str]) -> str:
    toggled = [t for t in active_tags if t != tag] if tag in active_tags else active_tags + [tag]
    params = {}
    if q:
        params["q"] = q
    if toggled:
        params["tags"] = ",".join(toggled)
    return "/?" + urlencode(params) if params else "/"


def _review_card(review: Review, q: str, active_tags: List[str]) -> str:
    image = (
        f'<img src="{esc(review.productImage)}" alt="{esc(review.title)}" loading="lazy"'
        + (f' data-gif="{esc(review.productGif)}"' if review.productGif else "")
        + ">"
        if review.productImage else '<div class="no-image">No image</div>'
    )
    tags = "".join(
        f'<a class="chip{" on" if t in active_tags else ""}" href="{esc(_tag_href(t, q, active_tags))}">#{esc(t)}</a>'
        for t in review.tags
    )
    pros = "".join(f"<li>{esc(p)}</li>" for p in review.pros)
    cons = "".join(f"<li>{esc(c)}</li>" for c in review.cons)
    pros_cons = ""
    if pros or cons:
        pros_cons = f"""
            <div class="pros-cons">
                {f'<ul class="pros">{pros}</ul>' if pros else ''}
                {f'<ul class="cons">{cons}</ul>' if cons else ''}
            </div>"""

    shop = ""
    if review.affiliateUrl:
        label, cls = merchant_info(review.affiliateUrl)
        shop = f'<a class="btn {cls}" href="{esc(go_link(review.affiliateUrl))}" rel="nofollow noopener" target="_blank">{esc(label)}</a>'

    return f"""
        <article class="card review">
            <div class="media">{image}</div>
            <div class="meta">
                <span class="badge {esc(review.platform)}">{esc(review.platform)}</span>
                {_stars(review.rating)}
                {f'<span class="price">{esc(review.price)}</span>' if review.price else ''}
            </div>
            <h3>{esc(review.title)}</h3>
            <div class="chips">{tags}</div>
            {pros_cons}
            <div class="actions">
                <a class="btn btn-ghost" href="{esc(go_link(review.reviewUrl))}" rel="noopener" target="_blank">Watch review</a>
                {shop}
            </div>
        </article>"""


def render_home(reviews: List[Review], q: str = "", active_tags: Optional[List[str]] = None, tiktok_url: Optional[str] = None) -> str:
    active_tags = active_tags or []

    all_tags = []
    for review in reviews:
        for tag in review.tags:
            if tag not in all_tags:
                all_tags.append(tag)
    for tag in active_tags:
        if tag not in all_tags:
            all_tags.append(tag)

    tag_bar = "".join(
        f'<a class="chip{" on" if t in active_tags else ""}" href="{esc(_tag_href(t, q, active_tags))}">#{esc(t)}</a>'
        for t in all_tags
    )
    clear_href = "/?" + urlencode({"q": q}) if q else "/"
    clear_tags = f'<a class="chip clear" href="{esc(clear_href)}">Clear tags</a>' if active_tags else ""

    cards = "".join(_review_card(r, q, active_tags) for r in reviews)
    if not cards:
        cards = '<div class="empty-state">No reviews found. Try another keyword or paste a TikTok link.</div>'

    tiktok_note = ""
    if tiktok_url:
        tiktok_note = f'<div class="alert alert-info">Showing results for TikTok video <code>{esc(tiktok_url)}</code></div>'

    body = f"""
    <div class="container">
        <header>
            <h1><a href="/">Review Hub</a></h1>
            <p>Honest product reviews from TikTok, YouTube and Reels</p>
        </header>
        <form class="search" method="get" action="/">
            <input type="search" name="q" value="{esc(q)}" placeholder="Search products or paste a TikTok link" autocomplete="off">
            {f'<input type="hidden" name="tags" value="{esc(",".join(active_tags))}">' if active_tags else ''}
            <button type="submit" class="btn">Search</button>
        </form>
        <div class="chips tag-bar">{tag_bar}{clear_tags}</div>
        {tiktok_note}
        <section class="grid">{cards}</section>
    </div>
    <script>
        // Swap to the animated GIF while hovering a product image
        document.querySelectorAll('img[data-gif]').forEach(function (img) {{
            var still = img.src;
            img.addEventListener('mouseenter', function () {{ img.src = img.dataset.gif; }});
            img.addEventListener('mouseleave', function () {{ img.src = still; }});
        }});
    </script>"""

    css = """
        .container { max-width: 1280px; margin: 0 auto; padding: 24px; }
        header { margin-bottom: 20px; }
        header h1 a { font-size: 28px; font-weight: 800; background: var(--gradient); -webkit-background-clip: text; -webkit-text-fill-color: transparent; }
        header p { color: var(--text-muted); font-size: 14px; margin-top: 4px; }
        .search { display: flex; gap: 10px; margin-bottom: 14px; }
        .chips { display: flex; flex-wrap: wrap; gap: 6px; margin: 8px 0; }
        .chip { font-size: 12px; padding: 4px 10px; border-radius: 999px; border: 1px solid var(--border); color: var(--text-muted); }
        .chip.on { border-color: var(--accent-1); color: var(--accent-1); }
        .chip.clear { color: #f87171; }
        .grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(260px, 1fr)); gap: 18px; margin-top: 16px; }
        .review h3 { font-size: 15px; margin: 10px 0 4px; }
        .media img, .no-image { width: 100%; aspect-ratio: 1; object-fit: cover; border-radius: 12px; background: rgba(255,255,255,0.03); }
        .no-image { display: flex; align-items: center; justify-content: center; color: var(--text-muted); font-size: 12px; }
        .meta { display: flex; align-items: center; gap: 8px; margin-top: 10px; font-size: 13px; }
        .stars { color: #fbbf24; letter-spacing: 1px; }
        .price { margin-left: auto; font-weight: 600; }
        .pros-cons { display: grid; grid-template-columns: 1fr 1fr; gap: 8px; font-size: 12px; margin: 8px 0; }
        .pros li { color: #34d399; } .cons li { color: #f87171; }
        .pros-cons ul { padding-left: 16px; }
        .actions { display: flex; gap: 8px; margin-top: 12px; }
        .actions .btn { flex: 1; font-size: 13px; padding: 9px 12px; }
        .m-shopee { background: linear-gradient(135deg,#FF6A3D 0%,#E63D17 100%); }
        .m-lazada { background: linear-gradient(135deg,#1A9CF3 0%,#FF5A00 100%); }
        .m-ikea   { background: linear-gradient(135deg,#1877C9 0%,#0D5FAA 100%); }
        .m-tiktok { background: linear-gradient(135deg,#FE2C55 0%,#25F4EE 100%); }
        .empty-state { grid-column: 1 / -1; text-align: center; padding: 48px; color: var(--text-muted); }
    """
    return _page("Review Hub", body, css)


# ══════════════════════════════════════════════════════════════════
#  ADMIN
# ══════════════════════════════════════════════════════════════════

def render_admin_login(message: str = "", next_path: str = "/admin") -> str:
    msg_html = f'<div class="alert alert-error">{esc(message)}</div>' if message else ""
    body = f"""
    <div class="card auth-card">
        <h1>Admin Login</h1>
        {msg_html}
        <form method="post" action="/admin/login">
            <input type="hidden" name="next" value="{esc(next_path)}">
            <input type="password" name="password" placeholder="Password" required autofocus>
            <button type="submit" class="btn">Sign In</button>
        </form>
    </div>"""
    css = """
        body { display: flex; justify-content: center; align-items: center; padding: 16px; }
        .auth-card { width: 100%; max-width: 380px; padding: 32px; }
        .auth-card h1 { font-size: 22px; margin-bottom: 20px; }
        .auth-card .btn { width: 100%; margin-top: 14px; }
    """
    return _page("Admin Login - Review Hub", body, css)


def _datetime_local(value: Optional[datetime]) -> str:
    if value is None:
        value = datetime.now(timezone.utc)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M")


def _review_form(review: Optional[Review], media_base: str) -> str:
    editing = review is not None
    action = f"/admin/reviews/{esc(review.id)}" if editing else "/admin/reviews"
    r = review

    def val(attr):
        return esc(getattr(r, attr, "") or "") if editing else ""

    platform_options = "".join(
        f'<option value="{p}"{" selected" if editing and r.platform == p else ""}>{p}</option>'
        for p in PLATFORMS
    )
    rating = "" if not editing or r.rating is None else f"{r.rating:g}"

    return f"""
        <form method="post" action="{action}" class="form-stack">
            <label>Title <input type="text" name="title" value="{val('title')}" required></label>
            <label>Platform <select name="platform">{platform_options}</select></label>
            <label>Product image <input type="text" name="productImage" value="{esc(strip_media(r.productImage, media_base)) if editing else ''}" placeholder="/images/product.jpg or https://..."></label>
            <label>Product GIF <input type="text" name="productGif" value="{esc(strip_media(r.productGif, media_base)) if editing else ''}" placeholder="/gifs/product.gif"></label>
            <div class="row">
                <label>Price <input type="text" name="price" value="{val('price')}"></label>
                <label>Rating (0-5) <input type="text" name="rating" value="{esc(rating)}" inputmode="decimal"></label>
            </div>
            <label>Tags <input type="text" name="tags" value="{esc(','.join(r.tags)) if editing else ''}" placeholder="skincare,budget"></label>
            <label>Aliases <input type="text" name="aliases" value="{esc(','.join(r.aliases)) if editing else ''}"></label>
            <label>Published at (UTC) <input type="datetime-local" name="publishedAt" value="{_datetime_local(r.publishedAt if editing else None)}" required></label>
            <label>Review URL <input type="text" name="reviewUrl" value="{val('reviewUrl')}" required></label>
            <label>Affiliate URL <input type="text" name="affiliateUrl" value="{val('affiliateUrl')}"></label>
            <label>Pros <input type="text" name="pros" value="{esc(','.join(r.pros)) if editing else ''}" placeholder="comma separated"></label>
            <label>Cons <input type="text" name="cons" value="{esc(','.join(r.cons)) if editing else ''}" placeholder="comma separated"></label>
            <div class="row">
                <button type="submit" class="btn">{'Save changes' if editing else 'Add review'}</button>
                {'<a class="btn btn-ghost" href="/admin">Cancel</a>' if editing else ''}
            </div>
        </form>"""


def render_admin_dashboard(
    reviews: List[Review],
    media_base: str,
    editing: Optional[Review] = None,
    filter_text: str = "",
    message: str = "",
    error: str = "",
) -> str:
    msg_html = f'<div class="alert alert-info">{esc(message)}</div>' if message else ""
    err_html = f'<div class="alert alert-error">{esc(error)}</div>' if error else ""

    rows = ""
    for r in reviews:
        published = r.publishedAt.strftime("%Y-%m-%d") if r.publishedAt else "—"
        rows += f"""
            <tr>
                <td><strong>{esc(r.title)}</strong><div class="sub"><code>{esc(r.reviewUrl)}</code></div></td>
                <td><span class="badge {esc(r.platform)}">{esc(r.platform)}</span></td>
                <td>{esc(', '.join(r.tags)) or '—'}</td>
                <td>{published}</td>
                <td class="actions-cell">
                    <a class="btn-tiny" href="/admin?{urlencode({'edit': r.id})}">Edit</a>
                    <form method="post" action="/admin/reviews/{esc(r.id)}/delete" style="display:inline" onsubmit="return confirm('Delete this review?')">
                        <button type="submit" class="btn-tiny btn-red">✕</button>
                    </form>
                </td>
            </tr>"""
    if not rows:
        rows = '<tr><td colspan="5" class="empty-state">No reviews yet. Add one with the form.</td></tr>'

    body = f"""
    <div class="container">
        <header class="card">
            <h1>Admin Dashboard</h1>
            <div class="header-actions">
                <a href="/" class="btn btn-ghost">View site</a>
                <form action="/api/admin/logout" method="post"><button class="btn btn-ghost">Logout</button></form>
            </div>
        </header>
        {msg_html}{err_html}
        <div class="layout">
            <div class="card">
                <form method="get" action="/admin" class="filter">
                    <input type="search" name="filter" value="{esc(filter_text)}" placeholder="Filter by title, tag or URL">
                </form>
                <div class="table-wrap">
                    <table>
                        <thead><tr><th>Title</th><th>Platform</th><th>Tags</th><th>Published</th><th></th></tr></thead>
                        <tbody>{rows}</tbody>
                    </table>
                </div>
            </div>
            <div class="card">
                <div class="section-title">{'Edit review' if editing else 'New review'}</div>
                {_review_form(editing, media_base)}
            </div>
        </div>
    </div>"""

    css = """
        .container { max-width: 1400px; margin: 0 auto; padding: 24px; }
        header { display: flex; justify-content: space-between; align-items: center; margin-bottom: 20px; }
        header h1 { font-size: 24px; font-weight: 800; }
        .header-actions { display: flex; gap: 10px; }
        .layout { display: grid; grid-template-columns: 2fr 1fr; gap: 20px; }
        @media (max-width: 1000px) { .layout { grid-template-columns: 1fr; } }
        .filter { margin-bottom: 14px; }
        .table-wrap { max-height: 75vh; overflow-y: auto; }
        table { width: 100%; border-collapse: collapse; }
        th { padding: 10px; text-align: left; color: var(--text-muted); font-size: 11px; text-transform: uppercase; position: sticky; top: 0; background: #111118; }
        td { padding: 10px; border-bottom: 1px solid rgba(255,255,255,0.04); font-size: 13px; vertical-align: top; }
        td .sub { margin-top: 4px; word-break: break-all; }
        .actions-cell { white-space: nowrap; }
        .btn-tiny { background: rgba(255,255,255,0.06); color: var(--text); border: none; padding: 5px 10px; border-radius: 6px; cursor: pointer; font-size: 11px; font-family: inherit; }
        .btn-red { background: rgba(239,68,68,0.12); color: #f87171; }
        .section-title { font-size: 16px; font-weight: 600; margin-bottom: 14px; }
        .form-stack { display: flex; flex-direction: column; gap: 10px; }
        .form-stack label { font-size: 11px; color: var(--text-muted); text-transform: uppercase; letter-spacing: 0.4px; display: flex; flex-direction: column; gap: 4px; }
        .row { display: flex; gap: 10px; }
        .row > * { flex: 1; }
        .empty-state { text-align: center; padding: 32px; color: var(--text-muted); }
    """
    return _page("Admin - Review Hub", body, css)


# ══════════════════════════════════════════════════════════════════
#  /go INTERSTITIAL
# ══════════════════════════════════════════════════════════════════

def _js_string(value: str) -> str:
    """JSON string literal safe to drop inside a <script> element."""
    return json.dumps(value).replace("</", "<\\/")


def render_open_in_browser(page: Interstitial) -> str:
    """
    Page shown inside in-app webviews for TikTok coupon links, which those
    webviews fail to render. The buttons are the reliable path; the automatic
    window.open is usually blocked.
    """
    coupon = esc(page.coupon_url)
    if page.product_url:
        product_action = f'<a class="btn btn-ghost" id="product-link" href="{esc(page.product_url)}" target="_blank" rel="noopener">Open product page</a>'
    else:
        product_action = '<a class="btn btn-ghost" id="product-link" aria-disabled="true" tabindex="-1">Open product page</a>'

    body = f"""
    <div class="card box">
        <h1>Open in your browser</h1>
        <p>This coupon page doesn't work inside this app. Tap the button below,
        or use the menu (⋯) and choose <strong>Open in browser</strong>.</p>
        <a class="btn" id="coupon-link" href="{coupon}" target="_blank" rel="noopener">Open coupon</a>
        {product_action}
        <p class="hint">Or copy this link:</p>
        <div class="url" id="coupon-url">{coupon}</div>
    </div>
    <script>
        try {{ window.open({_js_string(page.coupon_url)}, '_blank'); }} catch (e) {{}}
    </script>"""
    css = """
        body { display: flex; justify-content: center; align-items: center; padding: 16px; }
        .box { max-width: 440px; width: 100%; display: flex; flex-direction: column; gap: 12px; text-align: center; }
        .box h1 { font-size: 20px; }
        .box p { color: var(--text-muted); font-size: 14px; line-height: 1.5; }
        .hint { margin-top: 8px; }
        .url { font-family: monospace; font-size: 12px; word-break: break-all; user-select: all; background: rgba(255,255,255,0.05); padding: 10px; border-radius: 10px; }
    """
    return _page("Open in browser", body, css)
