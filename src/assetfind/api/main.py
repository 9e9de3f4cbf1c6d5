# src/assetfind/api/main.py

from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import CATALOG_FILE, CDN_BASE_URL, DEFAULT_PAGE_SIZE
from ..data.records import AssetRecord, attach_urls
from ..data.store import InMemoryCatalogStore
from ..exceptions import SearchError, StoreUnavailableError
from ..logger import get_logger
from ..retrieval.retriever import (
    LATEST_DEFAULT_LIMIT,
    SUGGEST_LIMIT,
    SearchPage,
    SearchService,
    clamp_latest,
)

logger = get_logger("api.main")


# ---------------------- Schemas ----------------------
class AssetOut(BaseModel):
    id: str
    title: str = ""
    name: str = ""
    description: str = ""
    category: str = ""
    secondary_category: str = ""
    alt: str = ""
    tags: List[str] = []
    keywords: List[str] = []
    slug: str = ""
    url: str = ""
    thumbnail_url: str = ""
    created_at: Optional[datetime] = None


class SearchPageOut(BaseModel):
    query: str
    items: List[AssetOut]
    cursor: Optional[int] = None
    total: int


class LatestPageOut(BaseModel):
    page: int
    limit: int
    items: List[AssetOut]


class ErrorOut(BaseModel):
    error: str
    message: str
    details: dict = {}


def _asset_out(record: AssetRecord, cdn_base_url: str) -> AssetOut:
    data = attach_urls(record, cdn_base_url).to_dict()
    return AssetOut(**{k: v for k, v in data.items() if k in AssetOut.model_fields})


def _page_out(page: SearchPage, cdn_base_url: str) -> SearchPageOut:
    return SearchPageOut(
        query=page.query,
        items=[_asset_out(r, cdn_base_url) for r in page.items],
        cursor=page.cursor,
        total=page.total,
    )


# ---------------------- Factory ----------------------
def create_app(service: Optional[SearchService] = None, cdn_base_url: str = CDN_BASE_URL) -> FastAPI:
    """
    Factory to create FastAPI app.
    Allows injecting a custom search service for testing.
    """
    app = FastAPI(title='assetfind API')

    # CORS middleware for frontend access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=['*'],
        allow_methods=['*'],
        allow_headers=['*'],
    )

    # Use provided service (for tests) or one over the configured catalog export
    if service is None:
        service = SearchService(InMemoryCatalogStore.from_file(CATALOG_FILE))

    @app.exception_handler(SearchError)
    async def search_error_handler(request: Request, exc: SearchError):
        if isinstance(exc, StoreUnavailableError):
            logger.error(f"{exc.message}: {exc.details.get('reason', '')}")
        body = ErrorOut(error=exc.error_code, message=exc.message, details=exc.details)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    # ---------- Health check ----------
    @app.get('/')
    def read_root():
        return {'message': 'assetfind backend is running'}

    # ---------- Search ----------
    @app.get('/search', response_model=SearchPageOut)
    async def search_first(
        q: str = Query("", description="Free-text query"),
        limit: int = DEFAULT_PAGE_SIZE,
    ):
        page = await service.search_first(q, limit)
        return _page_out(page, cdn_base_url)

    @app.get('/search/next', response_model=SearchPageOut)
    async def search_next(
        q: str = Query("", description="Same query passed to /search"),
        cursor: int = Query(..., description="Cursor returned by the previous page"),
        limit: int = DEFAULT_PAGE_SIZE,
    ):
        page = await service.search_next(q, cursor, limit)
        return _page_out(page, cdn_base_url)

    # ---------- Suggestions ----------
    @app.get('/suggest', response_model=List[str])
    async def suggest(q: str = "", limit: int = SUGGEST_LIMIT):
        return await service.suggest(q, limit)

    # ---------- Latest ----------
    @app.get('/latest', response_model=LatestPageOut)
    async def latest(page: int = 1, limit: int = LATEST_DEFAULT_LIMIT):
        page, limit = clamp_latest(page, limit)
        records = await service.latest(page, limit)
        return LatestPageOut(
            page=page,
            limit=limit,
            items=[_asset_out(r, cdn_base_url) for r in records],
        )

    return app


# ---------------------- Uvicorn entry ----------------------
# Expose a top-level 'app' for Uvicorn
app = create_app()
