"""POST /api/sync/* - token-authenticated ingestion from the editor client.

Each route takes ``{"input": [...]}`` and answers with a SyncResponse.
"""

from fastapi import APIRouter, Header

from .activity import ingest_file_aggregate, ingest_raw
from .commits import upsert_commits
from .models import SyncRequest, SyncResponse
from .rollups import merge_daily_stats

router = APIRouter(prefix="/api/sync")


def _bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


@router.post("/activities", response_model=SyncResponse)
async def sync_activities(req: SyncRequest, authorization: str | None = Header(default=None)):
    return ingest_raw(_bearer(authorization), req.input)


@router.post("/file-activities", response_model=SyncResponse)
async def sync_file_activities(req: SyncRequest, authorization: str | None = Header(default=None)):
    return ingest_file_aggregate(_bearer(authorization), req.input)


@router.post("/commits", response_model=SyncResponse)
async def sync_commits(req: SyncRequest, authorization: str | None = Header(default=None)):
    return upsert_commits(_bearer(authorization), req.input)


@router.post("/daily-stats", response_model=SyncResponse)
async def sync_daily_stats(req: SyncRequest, authorization: str | None = Header(default=None)):
    return merge_daily_stats(_bearer(authorization), req.input)
