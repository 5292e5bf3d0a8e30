"""
Aggregate statistics: per-user table with hall of fame, and rankings.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.db import DocumentStore
from backend.dependencies import get_document_store
from shared.firebase_constants import MATCHES_COLLECTION, USERS_COLLECTION
from stats.leaderboards import all_stats, rankings

router = APIRouter()


@router.get("/stats")
def get_all_stats(store: DocumentStore = Depends(get_document_store)):
    matches = [data for _, data in store.list(MATCHES_COLLECTION)]
    users = [data for _, data in store.list(USERS_COLLECTION)]
    return all_stats(matches, users)


@router.get("/rankings")
def get_rankings(store: DocumentStore = Depends(get_document_store)):
    return rankings(store.list(USERS_COLLECTION))
