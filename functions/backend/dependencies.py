"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials

from backend.auth import AuthClient, FirebaseAuthClient, InMemoryAuthClient
from backend.champions import ChampionCatalog
from backend.config import Settings, get_settings
from backend.db import (
    DocumentStore,
    FirestoreDocumentStore,
    InMemoryDocumentStore,
    SqlDocumentStore,
)

logger = logging.getLogger(__name__)

_document_store: DocumentStore | None = None
_auth_client: AuthClient | None = None
_champion_catalog: ChampionCatalog | None = None


def _use_firebase(settings: Settings) -> bool:
    return not settings.use_in_memory_backends and settings.firebase_configured


def _firebase_app_exists() -> bool:
    try:
        firebase_admin.get_app()
    except ValueError:
        return False
    return True


def _ensure_firebase_app(settings: Settings) -> None:
    if _firebase_app_exists():
        return
    credential = credentials.Certificate(
        {
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "client_email": settings.google_service_account_email,
            "private_key": settings.google_private_key,
            "token_uri": "https://oauth2.googleapis.com/token",
        }
    )
    firebase_admin.initialize_app(
        credential, {"projectId": settings.firebase_project_id}
    )


def get_document_store() -> DocumentStore:
    """
    Return a singleton document store so state persists across requests.
    """
    global _document_store
    if _document_store:
        return _document_store

    settings = get_settings()
    if settings.use_in_memory_backends:
        _document_store = InMemoryDocumentStore()
    elif settings.database_url:
        _document_store = SqlDocumentStore(settings.database_url)
    elif _use_firebase(settings):
        _ensure_firebase_app(settings)
        _document_store = FirestoreDocumentStore()
    else:
        logger.warning("No database configured; using the in-memory store")
        _document_store = InMemoryDocumentStore()
    return _document_store


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if _use_firebase(settings):
        _ensure_firebase_app(settings)
        _auth_client = FirebaseAuthClient()
    else:
        _auth_client = InMemoryAuthClient()
    return _auth_client


def get_champion_catalog() -> ChampionCatalog:
    global _champion_catalog
    if _champion_catalog:
        return _champion_catalog
    settings = get_settings()
    _champion_catalog = ChampionCatalog(
        base_url=settings.ddragon_base_url,
        locale=settings.ddragon_locale,
        ttl_seconds=settings.champion_cache_ttl_seconds,
    )
    return _champion_catalog
