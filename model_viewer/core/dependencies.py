from functools import lru_cache, partial
from typing import Optional

import httpx

# Implementations
from model_viewer.connections.aps_auth_provider import APSAuthenticator
from model_viewer.connections.aps_derivative_provider import APSModelDerivative
from model_viewer.connections.aps_storage_provider import APSObjectStorage
from model_viewer.connections.file_store_provider import JsonFileKeyValueStore
from model_viewer.connections.html_viewer_widget import HtmlViewerWidget
from model_viewer.connections.memory_store_provider import InMemoryKeyValueStore
from model_viewer.core.config import ProductionSettings, settings
from model_viewer.domain.interfaces import DerivativeService, KeyValueStore, ObjectStorage, WidgetFactory
from model_viewer.services.model_translator import ModelTranslator
from model_viewer.services.token_service import TokenService
from model_viewer.services.translation_poller import PollPolicy
from model_viewer.services.ttl_cache import TtlCache
from model_viewer.services.viewer_session import ViewerSession


@lru_cache()
def get_http_client() -> httpx.AsyncClient:
    """
    One connection pool per process for every APS call.
    Absolute URLs (signed S3 uploads) bypass the base URL.
    """
    return httpx.AsyncClient(base_url=settings.APS_BASE_URL, timeout=settings.HTTP_TIMEOUT)


@lru_cache()
def get_key_value_store() -> KeyValueStore:
    """
    Dependency Factory: Returns the token store based on ENV.
    """
    if isinstance(settings, ProductionSettings):
        return JsonFileKeyValueStore(settings.TOKEN_STORE_PATH)

    return InMemoryKeyValueStore()


@lru_cache()
def get_token_service() -> TokenService:
    authenticator = APSAuthenticator(get_http_client(), settings)
    cache = TtlCache(get_key_value_store())
    return TokenService(authenticator, cache, cache_key=settings.TOKEN_CACHE_KEY)


@lru_cache()
def get_viewer_token_service() -> TokenService:
    """
    Token embedded in viewer pages; never the write-scoped one above.
    """
    authenticator = APSAuthenticator(get_http_client(), settings, scope=settings.VIEWER_SCOPE)
    cache = TtlCache(get_key_value_store())
    return TokenService(authenticator, cache, cache_key=settings.VIEWER_TOKEN_CACHE_KEY)


@lru_cache()
def get_storage() -> ObjectStorage:
    return APSObjectStorage(get_http_client(), get_token_service().get_token, settings)


@lru_cache()
def get_derivative() -> DerivativeService:
    return APSModelDerivative(get_http_client(), get_token_service().get_token)


def get_poll_policy() -> PollPolicy:
    return PollPolicy.from_settings(settings)


@lru_cache()
def get_translator() -> ModelTranslator:
    return ModelTranslator(
        storage=get_storage(),
        derivative=get_derivative(),
        default_bucket_key=settings.BUCKET_KEY,
        poll_policy=get_poll_policy(),
    )


def get_widget_factory() -> WidgetFactory:
    return partial(
        HtmlViewerWidget,
        script_url=settings.VIEWER_SCRIPT_URL,
        style_url=settings.VIEWER_STYLE_URL,
        title=settings.APP_NAME,
    )


def create_viewer_session(container_id: Optional[str] = None) -> ViewerSession:
    """
    Not cached: every caller owns its own session.
    """
    return ViewerSession(
        container_id=container_id if container_id is not None else settings.VIEWER_CONTAINER_ID,
        tokens=get_viewer_token_service(),
        translator=get_translator(),
        derivative=get_derivative(),
        widget_factory=get_widget_factory(),
        settings=settings,
    )
