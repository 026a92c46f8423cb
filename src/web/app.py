"""
FastAPI Web Application - Review Hub
====================================

Public review grid, JSON catalog API, admin dashboard and the `/go`
outbound link resolver.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, Form, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from src.application.catalog import CatalogService, parse_limit, parse_tags
from src.domain.link_resolver import Interstitial, resolve
from src.domain.review_input import (
    LIST_FIELDS,
    MEDIA_FIELDS,
    join_media,
    parse_review_create,
    parse_review_update,
    split_csv,
)
from src.domain.tiktok import extract_tiktok_url, strip_token
from src.infrastructure.config import get_settings
from src.infrastructure.persistence import ReviewStore, StoreError
from src.infrastructure.tiktok import OEmbedClient
from src.web.auth import (
    clear_session_cookie,
    has_admin_session,
    is_admin,
    password_matches,
    set_session_cookie,
)
from src.web.pages import (
    render_admin_dashboard,
    render_admin_login,
    render_home,
    render_open_in_browser,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ADMIN_LIST_LIMIT = 300
NO_STORE = {"Cache-Control": "no-store"}


class LoginPayload(BaseModel):
    password: str = ""


# ── Dependencies ───────────────────────────────────────────────────

def get_store(request: Request) -> ReviewStore:
    return request.app.state.store


def get_catalog(request: Request) -> CatalogService:
    return request.app.state.catalog


def _safe_next(path: Optional[str]) -> str:
    """Only follow local redirects after login."""
    if path and path.startswith("/") and not path.startswith("//"):
        return path
    return "/admin"


def _admin_redirect(request: Request) -> RedirectResponse:
    next_path = request.url.path if request.method == "GET" else "/admin"
    return RedirectResponse(url="/admin/login?" + urlencode({"next": next_path}), status_code=303)


def _dashboard_redirect(**params) -> RedirectResponse:
    query = urlencode({k: v for k, v in params.items() if v})
    return RedirectResponse(url="/admin" + (f"?{query}" if query else ""), status_code=303)


def _validation_error(issues: dict) -> JSONResponse:
    return JSONResponse({"error": "ValidationError", "issues": issues}, status_code=400)


def _describe_issues(issues: dict) -> str:
    parts = list(issues.get("formErrors", []))
    parts += [f"{name}: {'; '.join(msgs)}" for name, msgs in issues.get("fieldErrors", {}).items()]
    return "Invalid review - " + ", ".join(parts)


async def _read_json(request: Request):
    try:
        return True, await request.json()
    except ValueError:
        return False, None


def create_app(store: Optional[ReviewStore] = None, oembed: Optional[OEmbedClient] = None) -> FastAPI:
    """
    Build the web app.

    The review store is owned by the app's lifespan and injected into handlers;
    tests pass their own store (e.g. backed by mongomock).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = get_settings()
        for issue in settings.validate():
            logger.warning(issue)

        app.state.store = store or ReviewStore(settings.mongo)
        app.state.catalog = CatalogService(app.state.store, oembed or OEmbedClient())
        try:
            await run_in_threadpool(app.state.store.ensure_indexes)
        except StoreError as e:
            logger.warning(f"Could not ensure indexes at startup: {e}")
        logger.info("Review store ready")
        yield
        app.state.store.close()

    app = FastAPI(title="Review Hub", description="Product review catalog", lifespan=lifespan)

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(f"Store error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse({"error": "DBError", "message": str(exc) or "DB error"}, status_code=500)

    register_routes(app)
    return app


def register_routes(app: FastAPI):

    # ── Outbound links ─────────────────────────────────────────────

    @app.get("/go")
    async def go(request: Request, u: Optional[str] = None):
        decision = resolve(u, request.headers.get("user-agent", ""))
        if isinstance(decision, Interstitial):
            return HTMLResponse(render_open_in_browser(decision), headers=NO_STORE)
        return RedirectResponse(url=decision.location, status_code=302)

    # ── Public catalog ─────────────────────────────────────────────

    @app.get("/", response_class=HTMLResponse)
    def home(q: str = "", tags: str = "", catalog: CatalogService = Depends(get_catalog)):
        display, tiktok_url = extract_tiktok_url(q)
        active_tags = parse_tags(tags)
        result = catalog.search(q=strip_token(display), tags=active_tags, tiktok_url=tiktok_url or "")
        return HTMLResponse(
            render_home(result.reviews, q=q, active_tags=active_tags, tiktok_url=tiktok_url),
            headers={"Cache-Control": result.cache_control},
        )

    @app.get("/api/reviews")
    def list_reviews(
        q: str = "",
        tags: str = "",
        limit: Optional[str] = None,
        tiktok_url: str = Query("", alias="tiktokUrl"),
        catalog: CatalogService = Depends(get_catalog),
    ):
        result = catalog.search(q=q, tags=parse_tags(tags), limit=parse_limit(limit), tiktok_url=tiktok_url)
        return JSONResponse(result.to_json(), headers={"Cache-Control": result.cache_control})

    # ── Catalog writes (admin) ─────────────────────────────────────

    @app.post("/api/reviews")
    async def create_review(request: Request, store: ReviewStore = Depends(get_store)):
        if not is_admin(request):
            return PlainTextResponse("Unauthorized", status_code=401)

        ok, raw = await _read_json(request)
        if not ok:
            return PlainTextResponse("Invalid JSON body", status_code=400)

        parsed = parse_review_create(raw, get_settings().media.base_url)
        if not parsed.ok:
            return _validation_error(parsed.issues)

        review_id = await run_in_threadpool(store.insert, parsed.value)
        return JSONResponse({"data": {"id": review_id}}, status_code=201)

    @app.put("/api/reviews/{review_id}")
    async def update_review(review_id: str, request: Request, store: ReviewStore = Depends(get_store)):
        if not is_admin(request):
            return PlainTextResponse("Unauthorized", status_code=401)
        if not store.is_valid_id(review_id):
            return PlainTextResponse("Invalid id", status_code=400)

        ok, raw = await _read_json(request)
        if not ok:
            return PlainTextResponse("Invalid JSON body", status_code=400)

        parsed = parse_review_update(raw, get_settings().media.base_url)
        if not parsed.ok:
            return _validation_error(parsed.issues)

        await run_in_threadpool(store.update_by_id, review_id, parsed.value)
        return {"ok": True}

    @app.delete("/api/reviews/{review_id}")
    def delete_review(review_id: str, request: Request, store: ReviewStore = Depends(get_store)):
        if not is_admin(request):
            return PlainTextResponse("Unauthorized", status_code=401)
        if not store.is_valid_id(review_id):
            return PlainTextResponse("Invalid id", status_code=400)

        store.delete_by_id(review_id)
        return {"ok": True}

    # ── Admin session ──────────────────────────────────────────────

    @app.post("/api/admin/login")
    async def api_login(request: Request):
        ok, raw = await _read_json(request)
        try:
            payload = LoginPayload.model_validate(raw if ok and isinstance(raw, dict) else {})
        except ValueError:
            payload = LoginPayload()

        if not get_settings().admin.password:
            return PlainTextResponse("ADMIN_PASSWORD not set", status_code=500)
        if not password_matches(payload.password):
            logger.warning("Admin API login failed")
            return PlainTextResponse("Invalid password", status_code=401)

        response = JSONResponse({"ok": True})
        set_session_cookie(response)
        return response

    @app.post("/api/admin/logout")
    async def api_logout():
        response = RedirectResponse(url="/admin/login", status_code=303)
        clear_session_cookie(response)
        return response

    @app.get("/admin/login", response_class=HTMLResponse)
    async def admin_login_page(message: str = "", next: str = "/admin"):
        return render_admin_login(message, _safe_next(next))

    @app.post("/admin/login")
    async def admin_login(password: str = Form(""), next: str = Form("/admin")):
        if not get_settings().admin.password:
            return HTMLResponse(render_admin_login("ADMIN_PASSWORD not set", _safe_next(next)), status_code=500)
        if not password_matches(password):
            logger.warning("Admin login failed")
            return HTMLResponse(render_admin_login("Invalid password", _safe_next(next)), status_code=401)

        response = RedirectResponse(url=_safe_next(next), status_code=303)
        set_session_cookie(response)
        return response

    # ── Admin dashboard ────────────────────────────────────────────

    @app.get("/admin", response_class=HTMLResponse)
    def admin_dashboard(
        request: Request,
        filter: str = "",
        edit: str = "",
        message: str = "",
        error: str = "",
        store: ReviewStore = Depends(get_store),
    ):
        if not has_admin_session(request):
            return _admin_redirect(request)

        media_base = get_settings().media.base_url
        try:
            reviews = store.find(limit=ADMIN_LIST_LIMIT)
            editing = store.get_by_id(edit) if edit else None
        except StoreError as e:
            logger.exception(f"Admin dashboard load failed: {e}")
            return HTMLResponse(render_admin_dashboard([], media_base, error=f"Database error: {str(e)[:80]}"), status_code=500)

        needle = filter.strip().lower()
        if needle:
            reviews = [
                r for r in reviews
                if needle in r.title.lower()
                or any(needle in t.lower() for t in r.tags)
                or needle in r.reviewUrl.lower()
            ]
        if edit and editing is None:
            error = error or "Review not found"

        return render_admin_dashboard(reviews, media_base, editing=editing, filter_text=filter, message=message, error=error)

    async def _form_payload(request: Request) -> dict:
        """Admin form fields -> JSON-style payload (comma lists split, media joined)."""
        form = await request.form()
        media_base = get_settings().media.base_url
        payload = {}
        for key, value in form.items():
            if not isinstance(value, str):
                continue
            if key in LIST_FIELDS:
                payload[key] = split_csv(value)
            elif key in MEDIA_FIELDS:
                payload[key] = join_media(value, media_base)
            else:
                payload[key] = value.strip()
        return payload

    @app.post("/admin/reviews")
    async def admin_create_review(request: Request, store: ReviewStore = Depends(get_store)):
        if not has_admin_session(request):
            return _admin_redirect(request)

        parsed = parse_review_create(await _form_payload(request), get_settings().media.base_url)
        if not parsed.ok:
            return _dashboard_redirect(error=_describe_issues(parsed.issues))

        try:
            await run_in_threadpool(store.insert, parsed.value)
        except StoreError as e:
            logger.exception(f"Admin create failed: {e}")
            return _dashboard_redirect(error=f"Database error: {str(e)[:80]}")
        return _dashboard_redirect(message="Review added")

    @app.post("/admin/reviews/{review_id}")
    async def admin_update_review(review_id: str, request: Request, store: ReviewStore = Depends(get_store)):
        if not has_admin_session(request):
            return _admin_redirect(request)
        if not store.is_valid_id(review_id):
            return _dashboard_redirect(error="Invalid id")

        parsed = parse_review_update(await _form_payload(request), get_settings().media.base_url)
        if not parsed.ok:
            return _dashboard_redirect(edit=review_id, error=_describe_issues(parsed.issues))

        try:
            found = await run_in_threadpool(store.update_by_id, review_id, parsed.value)
        except StoreError as e:
            logger.exception(f"Admin update failed: {e}")
            return _dashboard_redirect(edit=review_id, error=f"Database error: {str(e)[:80]}")
        if not found:
            return _dashboard_redirect(error="Review not found")
        return _dashboard_redirect(message="Review saved")

    @app.post("/admin/reviews/{review_id}/delete")
    def admin_delete_review(review_id: str, request: Request, store: ReviewStore = Depends(get_store)):
        if not has_admin_session(request):
            return _admin_redirect(request)
        if not store.is_valid_id(review_id):
            return _dashboard_redirect(error="Invalid id")

        try:
            store.delete_by_id(review_id)
        except StoreError as e:
            logger.exception(f"Admin delete failed: {e}")
            return _dashboard_redirect(error=f"Database error: {str(e)[:80]}")
        return _dashboard_redirect(message="Review deleted")


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)
