from typing import Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from config.logging_config import get_logger

# __name__ will set logger name as the file name: 'client'
logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"

ModelT = TypeVar("ModelT", bound=BaseModel)


class FetchError(Exception):
    """Base class for failures while retrieving a resource from pokeapi."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} ({url})")
        self.url = url


class NetworkFailure(FetchError):
    """Server unreachable, timed out or answered with a non-2xx status."""


class DecodeFailure(FetchError):
    """Body is not JSON or does not match the expected record."""


class PokeApiClient:
    """
    Async fetch client for pokeapi.

    One ``httpx.AsyncClient`` is shared by every request issued through this
    object, so concurrent fetches reuse the connection pool. Pass ``http_client``
    to supply a preconfigured client (e.g. with a mock transport), it will not
    be closed by ``aclose``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "PokeApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def resource_url(self, endpoint: str, identifier=None) -> str:
        url = f"{self.base_url}/{endpoint}/"
        if identifier is not None:
            url = f"{url}{identifier}/"
        return url

    def list_url(self, endpoint: str, limit: int) -> str:
        return f"{self.base_url}/{endpoint}?limit={limit}"

    async def fetch_json(self, url: str) -> dict:
        # failures are raised, not logged, the caller decides what a failure means
        logger.debug(f"GET {url}")
        try:
            response = await self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NetworkFailure(url, f"Resource not found or unavailable: HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            # Request failed or connection error
            raise NetworkFailure(url, f"Request failed: {exc!r}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise DecodeFailure(url, "Response body is not valid JSON") from exc

    async def fetch(self, url: str, model: Type[ModelT]) -> ModelT:
        """Retrieve ``url`` and decode it into ``model``. Unknown fields are ignored."""
        data = await self.fetch_json(url)
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise DecodeFailure(url, f"Invalid {model.__name__} payload, {exc.error_count()} error(s)") from exc
