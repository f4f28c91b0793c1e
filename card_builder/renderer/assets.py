"""
Asset fetchers

Renderers never resolve image references themselves; they call an injected
fetcher's ``fetch_bytes(ref)`` through fetch_asset(), which reports every
failure as AssetFetchError.
"""

import base64
import binascii
import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union
from urllib.parse import unquote_to_bytes, urlsplit

import requests

from card_builder.config.settings import settings
from card_builder.errors import AssetFetchError

logger = logging.getLogger(__name__)


def decode_data_url(ref: str) -> bytes:
    """Bytes of a ``data:`` URL (base64 or percent-encoded)."""
    header, sep, payload = ref.partition(",")
    if not sep:
        raise AssetFetchError("Malformed data URL (missing ',')")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise AssetFetchError(f"Invalid base64 data URL: {exc}") from exc
    return unquote_to_bytes(payload)


def fetch_asset(fetcher, ref: str) -> bytes:
    """
    Call an injected fetcher, reporting any failure as AssetFetchError.

    Fetchers are supplied by callers (dict lookups, storage clients, ...) and
    may fail in their own ways; renderers and preflight only handle
    AssetFetchError per element.
    """
    try:
        return fetcher.fetch_bytes(ref)
    except AssetFetchError:
        raise
    except Exception as exc:
        raise AssetFetchError(f"Could not fetch {ref[:80]!r}: {exc!r}") from exc


class AssetFetcher:
    """
    Default fetcher: data URLs, local files and http(s) URLs.

    Args:
        base_dir: directory relative paths are resolved against (and confined to)
        allow_remote: permit http(s) downloads (default from settings)
        timeout_s: per-request timeout for remote assets
        session: requests session to reuse connections
        allowed_hosts: when given, remote downloads are limited to these hosts
    """

    def __init__(
        self,
        base_dir: Optional[Union[str, Path]] = None,
        allow_remote: Optional[bool] = None,
        timeout_s: Optional[float] = None,
        session: Optional[requests.Session] = None,
        allowed_hosts: Optional[Sequence[str]] = None,
    ):
        self.base_dir = Path(base_dir).resolve() if base_dir is not None else None
        self.allow_remote = settings.allow_remote_assets if allow_remote is None else allow_remote
        self.timeout_s = settings.asset_timeout_s if timeout_s is None else timeout_s
        self.session = session or requests.Session()
        self.allowed_hosts = None if allowed_hosts is None else {h.lower() for h in allowed_hosts}

    def fetch_bytes(self, ref: str) -> bytes:
        if not ref:
            raise AssetFetchError("Empty asset reference")
        if ref.startswith("data:"):
            return decode_data_url(ref)
        if ref.startswith(("http://", "https://")):
            return self._fetch_remote(ref)
        return self._read_local(ref)

    def _fetch_remote(self, url: str) -> bytes:
        if not self.allow_remote:
            raise AssetFetchError(f"Remote assets are disabled: {url}")
        host = (urlsplit(url).hostname or "").lower()
        if self.allowed_hosts is not None and host not in self.allowed_hosts:
            raise AssetFetchError(f"Remote host {host!r} is not allowed for assets")
        try:
            response = self.session.get(url, timeout=self.timeout_s)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise AssetFetchError(f"Could not download {url}: {exc}") from exc
        logger.debug("Fetched %s (%d bytes)", url, len(response.content))
        return response.content

    def _read_local(self, ref: str) -> bytes:
        try:
            path = Path(ref[len("file://"):] if ref.startswith("file://") else ref)
            if self.base_dir is not None:
                path = (self.base_dir / path).resolve()
                if self.base_dir not in path.parents and path != self.base_dir:
                    raise AssetFetchError(f"Asset path escapes the asset directory: {ref}")
            return path.read_bytes()
        except (OSError, ValueError) as exc:
            # ValueError: embedded NUL bytes and similar unusable paths
            raise AssetFetchError(f"Could not read {ref!r}: {exc}") from exc


class MappingAssetFetcher:
    """Serves pre-resolved bytes keyed by asset reference."""

    def __init__(self, assets: Mapping[str, bytes]):
        self.assets = dict(assets)

    def fetch_bytes(self, ref: str) -> bytes:
        try:
            return self.assets[ref]
        except KeyError:
            raise AssetFetchError(f"Unknown asset reference: {ref}") from None
