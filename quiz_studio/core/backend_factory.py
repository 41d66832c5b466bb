"""Wiring of the storage and identity collaborators from configuration."""

from __future__ import annotations

import logging

from quiz_studio.config import ConfigurationError, Settings
from quiz_studio.core.quiz_manager import QuizManager
from quiz_studio.core.services.document_store import (
    DocumentStore,
    JsonFileDocumentStore,
    MemoryDocumentStore,
)
from quiz_studio.core.services.identity_provider import LocalIdentityProvider
from quiz_studio.core.services.quiz_collection import QuizCollection
from quiz_studio.core.services.session_bootstrapper import SessionBootstrapper

logger = logging.getLogger(__name__)


def create_quiz_manager(settings: Settings) -> QuizManager:
    """Build a quiz manager for ``settings``; call ``start()`` on the result."""
    backend = settings.backend
    store: DocumentStore
    if backend.backend == "file":
        data_dir = backend.data_dir
        if data_dir is None:
            raise ConfigurationError("dataDir is required for the file backend.")
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(f"Cannot use data directory {data_dir}: {exc}") from exc
        store = JsonFileDocumentStore(data_dir)
        session_file = data_dir / LocalIdentityProvider.SESSION_FILE_NAME
    else:
        store = MemoryDocumentStore()
        session_file = None

    identity = LocalIdentityProvider(custom_tokens=backend.custom_tokens, session_file=session_file)
    try:
        collection = QuizCollection(store, settings.app_id)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    logger.info("Using %s backend, collection %s", backend.backend, collection.path)
    bootstrapper = SessionBootstrapper(identity, settings.initial_auth_token)
    return QuizManager(collection=collection, bootstrapper=bootstrapper)
