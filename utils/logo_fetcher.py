#!/usr/bin/env python3
"""
Logo acquisition for token list entries.

A logoURI is either a remote http(s) URL, a file:// URI or a plain
filesystem path (absolute, or relative to the input file's directory).
"""

import os
from typing import Optional, Tuple
from urllib.parse import urljoin, urlparse
from urllib.request import url2pathname

import requests

from logger import logger


USER_AGENT = "vfat-token-lists/1.0"
MAX_REDIRECTS = 5
REDIRECT_CODES = (301, 302, 303, 307, 308)


class FetchError(Exception):
    """Remote logo could not be downloaded."""


def is_remote_uri(logo_uri: str) -> bool:
    return logo_uri.startswith("http://") or logo_uri.startswith("https://")


def file_uri_to_path(logo_uri: str) -> str:
    parsed = urlparse(logo_uri)
    if parsed.netloc and parsed.netloc != "localhost":
        raise ValueError(f"file URI must be local: {logo_uri}")
    return url2pathname(parsed.path)


def resolve_local_logo_path(logo_uri: str, base_dir: str) -> Optional[str]:
    """
    Resolve a logoURI to a local filesystem path.

    Args:
        logo_uri: Value of the token's logoURI field
        base_dir: Directory that relative paths are resolved against

    Returns:
        Absolute path for local references, None for remote URLs
    """
    if is_remote_uri(logo_uri):
        return None
    if logo_uri.startswith("file://"):
        return file_uri_to_path(logo_uri)
    if os.path.isabs(logo_uri):
        return logo_uri
    return os.path.abspath(os.path.join(base_dir, logo_uri))


class LogoFetcher:
    def __init__(self, session=None, max_redirects: int = MAX_REDIRECTS):
        self.session = session if session is not None else requests.Session()
        self.max_redirects = max_redirects

    def fetch_url(self, url: str) -> bytes:
        """
        Download a URL, following up to max_redirects redirects.

        Args:
            url: http(s) URL to fetch

        Returns:
            Response body

        Raises:
            FetchError: invalid URL, redirect loop, non-200 response or
                transport failure
        """
        redirect_count = 0
        while True:
            if redirect_count > self.max_redirects:
                raise FetchError(f"too many redirects for {url}")

            try:
                parsed = urlparse(url)
            except ValueError:
                raise FetchError(f"invalid URL: {url}") from None
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise FetchError(f"invalid URL: {url}")

            try:
                response = self.session.get(
                    url,
                    headers={"User-Agent": USER_AGENT},
                    allow_redirects=False,
                )
            except requests.RequestException as e:
                raise FetchError(f"request error for {url}: {e}") from e

            status = response.status_code
            location = response.headers.get("Location")
            if status in REDIRECT_CODES and location:
                response.close()
                try:
                    next_url = urljoin(url, location)
                except ValueError:
                    raise FetchError(f"invalid URL: {location}") from None
                logger.debug(f"Redirect {status}: {url} -> {next_url}")
                url = next_url
                redirect_count += 1
                continue

            if status != 200:
                response.close()
                raise FetchError(f"request failed ({status}) for {url}")

            return response.content

    def read_logo(self, logo_uri: str, base_dir: str) -> Tuple[bytes, Optional[str]]:
        """
        Load the raw bytes behind a logoURI.

        Returns:
            Tuple of (image bytes, resolved local path or None for remote logos)
        """
        local_path = resolve_local_logo_path(logo_uri, base_dir)
        if local_path:
            with open(local_path, "rb") as f:
                return f.read(), local_path
        return self.fetch_url(logo_uri), None
