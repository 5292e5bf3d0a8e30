"""
Champion name search for the result entry form.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.champions import ChampionCatalog
from backend.dependencies import get_champion_catalog

router = APIRouter()


@router.get("/riot/champions", response_model=list[str])
def search_champions(
    q: str = Query(default=""),
    catalog: ChampionCatalog = Depends(get_champion_catalog),
):
    if not catalog.champions():
        raise HTTPException(status_code=502, detail="Champion data is unavailable.")
    return catalog.search(q)
