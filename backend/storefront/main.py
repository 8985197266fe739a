import json
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import (
    FastAPI,
    HTTPException,
    Depends,
    Query,
    Request,
)
from fastapi.responses import HTMLResponse, StreamingResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.orm import Session
from sqlalchemy import text
from starlette.concurrency import run_in_threadpool

from .config import GRID_REGISTRY_SIZE, ROTATOR_REGISTRY_SIZE, configure_logging
from .database import SessionLocal, engine, get_db
from .filters import (
    FLAG_PARAMS,
    FilterState,
    SortKey,
    navigate,
    set_sort,
    toggle_category,
    toggle_flag,
)
from .grid import GridRegistry
from .redis_client import get_redis
from .rotator import Rotator, RotatorRegistry
from .settings_provider import get_settings
from . import auth, crud, links, models, schemas, site_config

logger = logging.getLogger("storefront.main")

BASE_DIR = Path(__file__).resolve().parent

FLAG_LABELS = {"on_sale": "On Sale", "is_new": "New Arrivals"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    models.Base.metadata.create_all(bind=engine)
    yield
    app.state.grids.close_all()
    app.state.rotators.close_all()


app = FastAPI(title="Exclusive Fashions Storefront", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")

app.state.grids = GridRegistry(max_size=GRID_REGISTRY_SIZE)
app.state.rotators = RotatorRegistry(max_size=ROTATOR_REGISTRY_SIZE)
app.state.session_factory = SessionLocal
app.state.session_store = auth.SessionStore(get_redis())

templates = Jinja2Templates(directory=BASE_DIR / "templates")
templates.env.filters["money"] = lambda value: f"TTD ${value:.2f}"
templates.env.globals.update(
    nav_links=site_config.NAV_LINKS,
    footer_shop_links=site_config.FOOTER_SHOP_LINKS,
    footer_company_links=site_config.FOOTER_COMPANY_LINKS,
    whatsapp_link=links.whatsapp_link,
    instagram_link=links.instagram_link,
    phone_link=links.phone_link,
    product_whatsapp_link=links.product_whatsapp_link,
    quick_view_message=links.quick_view_message,
)


def grid_more_url(grid_id: str, grid) -> str:
    """Sentinel target. Carries the filters so an evicted grid can be rebuilt."""
    url = f"/products/grid/{grid_id}/more?loaded={grid.page}"
    query = grid.filters.model_copy(update={"page": 1}).to_query()
    return f"{url}&{query}" if query else url


templates.env.globals["grid_more_url"] = grid_more_url


def get_cache():
    return get_redis()


def current_settings(db: Session = Depends(get_db), cache=Depends(get_cache)):
    return get_settings(db, cache)


# -------------------- CATALOG FETCH --------------------
def _load_page(session_factory, filters: FilterState, page: int):
    db = session_factory()
    try:
        items = crud.list_products(db, **filters.query_args(page))
        return [schemas.ProductOut.from_model(p) for p in items]
    finally:
        db.close()


def catalog_fetcher(session_factory):
    async def fetch_page(filters: FilterState, page: int):
        return await run_in_threadpool(_load_page, session_factory, filters, page)
    return fetch_page


# -------------------- ADMIN GATE --------------------
@app.middleware("http")
async def admin_gate(request: Request, call_next):
    path = request.url.path
    if path.startswith(auth.ADMIN_PREFIX):
        store = request.app.state.session_store
        authenticated = await run_in_threadpool(
            store.is_active, request.cookies.get(auth.SESSION_COOKIE)
        )
        target = auth.admin_redirect(path, authenticated)
        if target is not None:
            return RedirectResponse(target, status_code=307)
    return await call_next(request)


# -------------------- PAGES --------------------
@app.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    db: Session = Depends(get_db),
    settings: schemas.SiteSettingsOut = Depends(current_settings),
):
    featured = await run_in_threadpool(crud.list_featured_products, db)
    trending = [schemas.ProductOut.from_model(p) for p in featured]
    return templates.TemplateResponse(
        request,
        "home.html",
        {
            "settings": settings,
            "trending": trending,
            "hero": site_config.HERO_SLIDES,
            "announcements": site_config.ANNOUNCEMENTS,
            "chips": site_config.CATEGORY_CHIPS,
            "rotators": {
                name: request.app.state.rotators.create(
                    name, len(ROTATORS[name]), ROTATOR_INTERVALS[name] / 1000
                )[0]
                for name in ROTATORS
            },
        },
    )


def _filter_links(query: str, filters: FilterState, categories):
    return {
        "categories": [
            {
                "name": c.name,
                "slug": c.slug,
                "active": filters.category == c.slug,
                "href": navigate(toggle_category(query, c.slug)),
            }
            for c in categories
        ],
        "flags": [
            {
                "name": name,
                "label": FLAG_LABELS[name],
                "active": getattr(filters, name),
                "href": navigate(toggle_flag(query, name)),
            }
            for name in FLAG_PARAMS
        ],
        "sorts": [
            {
                "value": key.value,
                "label": key.label,
                "active": filters.sort is key,
                "href": navigate(set_sort(query, key.value)),
            }
            for key in SortKey
        ],
    }


@app.get("/products", response_class=HTMLResponse)
async def product_listing(
    request: Request,
    db: Session = Depends(get_db),
    settings: schemas.SiteSettingsOut = Depends(current_settings),
):
    query = str(request.query_params)
    filters = FilterState.from_query(request.query_params)
    categories = await run_in_threadpool(crud.list_categories, db)

    grid_id, grid = request.app.state.grids.create(
        catalog_fetcher(request.app.state.session_factory)
    )
    await grid.apply_filters(filters)

    return templates.TemplateResponse(
        request,
        "listing.html",
        {
            "settings": settings,
            "filters": filters,
            "links": _filter_links(query, filters, categories),
            "grid": grid,
            "grid_id": grid_id,
            "items": grid.items,
        },
    )


@app.get("/products/grid/{grid_id}/more", response_class=HTMLResponse)
async def product_grid_more(
    request: Request,
    grid_id: str,
    loaded: int | None = Query(None, ge=1),
    settings: schemas.SiteSettingsOut = Depends(current_settings),
):
    grids = request.app.state.grids
    try:
        grid = grids.get(grid_id)
    except KeyError:
        if loaded is None:
            raise HTTPException(status_code=404, detail="Grid not found")
        grid = grids.restore(
            grid_id,
            catalog_fetcher(request.app.state.session_factory),
            FilterState.from_query(request.query_params),
            loaded,
        )
    items = await grid.load_more()
    return templates.TemplateResponse(
        request,
        "_grid_page.html",
        {"settings": settings, "grid": grid, "grid_id": grid_id, "items": items},
    )


@app.get("/products/{slug}", response_class=HTMLResponse)
def product_detail(
    request: Request,
    slug: str,
    db: Session = Depends(get_db),
    settings: schemas.SiteSettingsOut = Depends(current_settings),
):
    product = crud.get_product_by_slug(db, slug)
    if product is None:
        return templates.TemplateResponse(
            request, "not_found.html", {"settings": settings}, status_code=404
        )
    return templates.TemplateResponse(
        request,
        "detail.html",
        {"settings": settings, "product": schemas.ProductOut.from_model(product)},
    )


@app.get("/contact", response_class=HTMLResponse)
def contact(
    request: Request,
    settings: schemas.SiteSettingsOut = Depends(current_settings),
):
    return templates.TemplateResponse(
        request, "contact.html", {"settings": settings, "errors": [], "form": {}}
    )


@app.post("/contact", response_class=HTMLResponse)
async def submit_inquiry(
    request: Request,
    db: Session = Depends(get_db),
    settings: schemas.SiteSettingsOut = Depends(current_settings),
):
    form = dict(await request.form())
    try:
        payload = schemas.InquiryCreate(
            name=form.get("name", ""),
            contact=form.get("contact", ""),
            message=form.get("message", ""),
        )
    except ValidationError as e:
        errors = [f"{err['loc'][0]}: {err['msg']}" for err in e.errors()]
        return templates.TemplateResponse(
            request,
            "contact.html",
            {"settings": settings, "errors": errors, "form": form},
            status_code=422,
        )
    await run_in_threadpool(crud.create_inquiry, db, payload)
    logger.info("Stored inquiry from %r", payload.contact)
    return templates.TemplateResponse(
        request,
        "contact.html",
        {"settings": settings, "errors": [], "form": {}, "sent": True},
    )


@app.get("/admin", response_class=HTMLResponse)
def admin_home(request: Request):
    return templates.TemplateResponse(request, "admin.html", {"title": "Admin"})


@app.get("/admin/login", response_class=HTMLResponse)
def admin_login(request: Request):
    return templates.TemplateResponse(request, "admin.html", {"title": "Admin login"})


# -------------------- ROTATORS --------------------
ROTATORS = {
    "announcements": site_config.ANNOUNCEMENTS.messages,
    "hero": site_config.HERO_SLIDES.slides,
}
ROTATOR_INTERVALS = {
    "announcements": site_config.ANNOUNCEMENTS.rotate_interval_ms,
    "hero": site_config.HERO_SLIDES.rotate_interval_ms,
}


def _rotator_or_404(request: Request, rotator_id: str) -> Rotator:
    try:
        return request.app.state.rotators.get(rotator_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Rotator not found")


@app.get("/sse/rotator/{name}")
async def sse_rotator(request: Request, name: str, rotator: str | None = None):
    if name not in ROTATORS:
        raise HTTPException(status_code=404, detail="Unknown rotator")
    registry = request.app.state.rotators
    if rotator is not None and rotator in registry and registry.get(rotator).name == name:
        current = registry.get(rotator)
    else:
        # page rendered before a restart, or no controls; run a private timer
        current = Rotator(len(ROTATORS[name]), ROTATOR_INTERVALS[name] / 1000, name=name)

    async def event_stream():
        queue: asyncio.Queue = asyncio.Queue()
        current.start(queue.put_nowait)
        try:
            yield f"data: {json.dumps(current.snapshot())}\n\n"
            while not await request.is_disconnected():
                snapshot = await queue.get()
                yield f"data: {json.dumps(snapshot)}\n\n"
        finally:
            current.close()

    return StreamingResponse(event_stream(), media_type="text/event-stream")


@app.post("/rotators/{rotator_id}/hover")
async def rotator_hover(request: Request, rotator_id: str, hovering: bool = Query(...)):
    rotator = _rotator_or_404(request, rotator_id)
    rotator.hover(hovering)
    return {**rotator.snapshot(), "paused": rotator.paused}


@app.post("/rotators/{rotator_id}/go/{index}")
async def rotator_go_to(request: Request, rotator_id: str, index: int):
    rotator = _rotator_or_404(request, rotator_id)
    rotator.go_to(index)
    return rotator.snapshot()


@app.post("/rotators/{rotator_id}/next")
async def rotator_next(request: Request, rotator_id: str):
    rotator = _rotator_or_404(request, rotator_id)
    rotator.next()
    return rotator.snapshot()


@app.post("/rotators/{rotator_id}/previous")
async def rotator_previous(request: Request, rotator_id: str):
    rotator = _rotator_or_404(request, rotator_id)
    rotator.previous()
    return rotator.snapshot()


# -------------------- JSON API --------------------
@app.get("/api/products", response_model=schemas.ProductPageOut)
def api_list_products(
    page: int = Query(1, ge=1),
    category: str | None = None,
    on_sale: str | None = None,
    is_new: str | None = None,
    sort: str | None = None,
    db: Session = Depends(get_db),
):
    items = crud.list_products(
        db, page=page, category=category, on_sale=on_sale, is_new=is_new, sort=sort
    )
    return {
        "items": [schemas.ProductOut.from_model(p) for p in items],
        "page": page,
        "page_size": crud.PAGE_SIZE,
        "has_more": len(items) > 0,
    }


@app.get("/api/products/{slug}", response_model=schemas.ProductOut)
def api_get_product(slug: str, db: Session = Depends(get_db)):
    product = crud.get_product_by_slug(db, slug)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return schemas.ProductOut.from_model(product)


@app.get("/api/categories", response_model=list[schemas.CategoryOut])
def api_list_categories(db: Session = Depends(get_db)):
    return crud.list_categories(db)


@app.get("/api/settings", response_model=schemas.SiteSettingsOut)
def api_settings(settings: schemas.SiteSettingsOut = Depends(current_settings)):
    return settings


@app.get("/health")
def health(db: Session = Depends(get_db), cache=Depends(get_cache)):
    response = {"backend": "ok", "database": "unavailable", "redis": "not configured"}
    try:
        db.execute(text("SELECT 1"))
        response["database"] = "ok"
    except Exception as e:
        response["database"] = f"error: {str(e)[:80]}"
    if cache is not None:
        try:
            cache.ping()
            response["redis"] = "ok"
        except Exception as e:
            response["redis"] = f"error: {str(e)[:80]}"
    return response
