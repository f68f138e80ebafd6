"""API route handlers for article submission and polling."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, Response

from articlepipe.orchestrator.runner import QueueFullError
from articlepipe.schemas.article import ArticleCreate, ArticleDetail, ArticleListItem
from articlepipe.services.errors import ArticleNotFound

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.post("/articles", status_code=201, response_model=ArticleDetail)
async def create_article(body: ArticleCreate, request: Request):
    """Store a new article as queued and hand it to the job runner."""
    store = request.app.state.store
    runner = request.app.state.runner

    article = await store.create_article(
        url=body.url,
        format=body.format,
        length=body.length,
        language=body.language,
        style=body.style,
        owner_id=body.owner_id,
    )

    try:
        runner.submit(article.id)
    except QueueFullError as e:
        logger.warning(f"Rejecting article {article.id}: {e}")
        await store.delete_article(article.id)
        raise HTTPException(status_code=503, detail="Server busy, try again later")

    logger.info(f"Queued article {article.id} for processing")
    return article


@router.get("/articles", response_model=list[ArticleListItem])
async def list_articles(
    request: Request,
    owner_id: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
):
    """List articles, newest first."""
    return await request.app.state.store.list_articles(
        owner_id=owner_id, limit=limit, offset=offset
    )


@router.get("/articles/{article_id}", response_model=ArticleDetail)
async def get_article(article_id: int, request: Request):
    try:
        return await request.app.state.store.get_article(article_id)
    except ArticleNotFound:
        raise HTTPException(status_code=404, detail="Article not found")


@router.delete("/articles/{article_id}", status_code=204)
async def delete_article(article_id: int, request: Request):
    try:
        await request.app.state.store.delete_article(article_id)
    except ArticleNotFound:
        raise HTTPException(status_code=404, detail="Article not found")
    return Response(status_code=204)
