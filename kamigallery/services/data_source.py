"""
Collection data sources.

Fetches the four collection files, either over HTTP or from a local
directory:

- images   (mandatory) {id: image_url}
- traits   (mandatory) {id: {category: value}}
- stats    (optional)  {id: {"stats": {...}}}
- metadata (optional)  {"newKamiIds": [...]}

A mandatory file that cannot be read or decoded fails the whole fetch with
CorpusLoadError. An optional file that cannot be read is logged and
returned as None.
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import httpx

from kamigallery.config import settings
from kamigallery.models.failure import CorpusLoadError

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@dataclass(frozen=True)
class CorpusFiles:
    """Decoded contents of the collection files."""

    images: Any
    traits: Any
    stats: Any = None
    metadata: Any = None


class CorpusSource(Protocol):
    """Anything that can fetch the collection files."""

    async def fetch(self) -> CorpusFiles: ...


def _cache_buster() -> str:
    """Millisecond timestamp used as a cache-busting query value."""
    return str(int(time.time() * 1000))


class HttpCorpusSource:
    """
    Fetches collection files from a base URL.

    Each request carries no-cache headers and a ?v=<timestamp> parameter
    so refreshes always see the latest files.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        cache_busting: bool | None = None,
    ) -> None:
        """
        Initialize the source.

        Args:
            base_url: URL the files are served under.
            timeout: Request timeout in seconds. Defaults to settings.fetch_timeout.
            cache_busting: Defaults to settings.cache_busting.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.fetch_timeout
        self.cache_busting = (
            cache_busting if cache_busting is not None else settings.cache_busting
        )

    def _url(self, file_name: str) -> str:
        return f"{self.base_url}/{file_name}"

    async def _get_json(self, client: httpx.AsyncClient, file_name: str) -> Any:
        params = {"v": _cache_buster()} if self.cache_busting else None
        headers = NO_CACHE_HEADERS if self.cache_busting else None
        response = await client.get(self._url(file_name), params=params, headers=headers)
        response.raise_for_status()
        return response.json()

    async def _get_required(self, client: httpx.AsyncClient, file_name: str) -> Any:
        try:
            return await self._get_json(client, file_name)
        except httpx.HTTPStatusError as e:
            raise CorpusLoadError(
                f"Failed to load {file_name}: {e.response.status_code}",
                detail=str(e),
            ) from e
        except httpx.HTTPError as e:
            raise CorpusLoadError(f"Failed to load {file_name}", detail=str(e)) from e
        except ValueError as e:
            raise CorpusLoadError(f"{file_name} is not valid JSON", detail=str(e)) from e

    async def _get_optional(self, client: httpx.AsyncClient, file_name: str) -> Any:
        try:
            return await self._get_json(client, file_name)
        except (httpx.HTTPError, ValueError) as e:
            logger.info("Optional file %s unavailable: %s", file_name, e)
            return None

    async def fetch(self) -> CorpusFiles:
        """
        Fetch all collection files.

        Returns:
            CorpusFiles with stats/metadata set to None when unavailable

        Raises:
            CorpusLoadError: If images or traits cannot be fetched or decoded
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            images = await self._get_required(client, settings.images_file)
            traits = await self._get_required(client, settings.traits_file)
            stats = await self._get_optional(client, settings.stats_file)
            metadata = await self._get_optional(client, settings.metadata_file)

        return CorpusFiles(images=images, traits=traits, stats=stats, metadata=metadata)


class LocalCorpusSource:
    """Reads collection files from a directory."""

    def __init__(self, data_dir: Path | None = None) -> None:
        self.data_dir = data_dir if data_dir is not None else settings.data_dir

    def _read_json(self, file_name: str) -> Any:
        with open(self.data_dir / file_name, encoding="utf-8") as f:
            return json.load(f)

    def _read_required(self, file_name: str) -> Any:
        path = self.data_dir / file_name
        try:
            return self._read_json(file_name)
        except FileNotFoundError as e:
            raise CorpusLoadError(f"{file_name} not found", detail=str(path)) from e
        except OSError as e:
            raise CorpusLoadError(f"Failed to read {file_name}", detail=str(e)) from e
        except ValueError as e:
            raise CorpusLoadError(
                f"{file_name} is corrupted. Replace it and refresh.",
                detail=str(e),
            ) from e

    def _read_optional(self, file_name: str) -> Any:
        try:
            return self._read_json(file_name)
        except FileNotFoundError:
            logger.info("Optional file %s not found in %s", file_name, self.data_dir)
            return None
        except (OSError, ValueError) as e:
            logger.warning("Could not read optional file %s: %s", file_name, e)
            return None

    async def fetch(self) -> CorpusFiles:
        """
        Read all collection files.

        Raises:
            CorpusLoadError: If images or traits cannot be read or decoded
        """
        return CorpusFiles(
            images=self._read_required(settings.images_file),
            traits=self._read_required(settings.traits_file),
            stats=self._read_optional(settings.stats_file),
            metadata=self._read_optional(settings.metadata_file),
        )


def source_from_settings() -> CorpusSource:
    """HTTP source when data_url is configured, local directory otherwise."""
    if settings.data_url:
        return HttpCorpusSource(settings.data_url)
    return LocalCorpusSource()
