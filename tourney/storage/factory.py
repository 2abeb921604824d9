from loguru import logger

from tourney.config.settings import AppSettings
from tourney.storage.base import DocumentStore
from tourney.storage.memory_store import InMemoryDocumentStore
from tourney.storage.supabase_store import SupabaseDocumentStore, initialize_supabase


async def build_store(app_settings: AppSettings) -> DocumentStore:
    """Creates the document store selected by ``store_backend``."""
    if app_settings.store_backend == "supabase":
        client = await initialize_supabase(app_settings)
        return SupabaseDocumentStore(
            client, max_attempts=app_settings.store_max_attempts
        )
    logger.info("Using in-memory document store; data is lost on exit.")
    return InMemoryDocumentStore(max_attempts=app_settings.store_max_attempts)
