"""Clients API — dashboard list, stats, and detail drawer."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.responses import ClientDetailResponse, ClientListItem, ClientStatsResponse
from ..services.client_service import client_to_dict, get_client_detail, get_stats, list_clients

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.get("", response_model=list[ClientListItem])
def list_all(
    status: Optional[str] = Query(None, description="current, warning, critical, suspended or all"),
    search: Optional[str] = Query(None, max_length=200),
    limit: int = Query(200, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Clients with the longest non-payment streak first."""
    rows = list_clients(db, status=status, search=search, limit=limit, offset=offset)
    return [client_to_dict(c) for c in rows]


@router.get("/stats", response_model=ClientStatsResponse)
def stats(db: Session = Depends(get_db)):
    return get_stats(db)


@router.get("/{client_id}", response_model=ClientDetailResponse)
def detail(client_id: int, db: Session = Depends(get_db)):
    return get_client_detail(db, client_id)
