"""
Schema fetcher.
Downloads <Name>.xml schema descriptions from a remote directory and keeps
them in an on-disk cache so later runs work offline.
"""

import os
import traceback
from typing import Iterable, List, Optional

import requests

from codegen.registry import SchemaRegistry
from codegen.schema import SchemaError, TableSchema
from codegen.xml_parser import parse_dbc_xml
from constants import HTTP_TIMEOUT, SCHEMA_FILE_SUFFIX
from utils.logging import log_error


class SchemaFetcher:
    """Client for a plain HTTP directory of schema files."""

    def __init__(self, base_url: str, cache_dir: str, timeout: int = HTTP_TIMEOUT):
        self.base_url = base_url.rstrip("/") + "/"
        self.cache_dir = cache_dir
        self.timeout = timeout
        os.makedirs(cache_dir, exist_ok=True)

    def fetch(self, table_name: str) -> Optional[TableSchema]:
        """
        Get one table's schema, from the cache when possible.

        Returns:
            Parsed schema, or None if it could not be downloaded or parsed
        """
        text = self._load_cache(table_name)
        if text is None:
            text = self._request(table_name)
            if text is None:
                return None
            try:
                schema = parse_dbc_xml(text)
            except SchemaError as e:
                log_error(f"Invalid schema for {table_name}: {e}", type(e).__name__)
                return None
            self._save_cache(table_name, text)
            return schema

        try:
            return parse_dbc_xml(text)
        except SchemaError as e:
            log_error(
                f"Cached schema for {table_name} is invalid: {e}",
                type(e).__name__,
                traceback.format_exc(),
            )
            return None

    def fetch_all(self, table_names: Iterable[str]) -> List[TableSchema]:
        """Fetch several tables, skipping the ones that fail."""
        schemas = []
        for name in table_names:
            schema = self.fetch(name)
            if schema is not None:
                schemas.append(schema)
        return schemas

    def fetch_into(self, registry: SchemaRegistry, table_names: Iterable[str]) -> int:
        """Fetch tables missing from ``registry`` and add them. Returns the count added."""
        missing = [name for name in table_names if name not in registry]
        schemas = self.fetch_all(missing)
        for schema in schemas:
            registry.add(schema)
        return len(schemas)

    def _url(self, table_name: str) -> str:
        return f"{self.base_url}{table_name}{SCHEMA_FILE_SUFFIX}"

    def _request(self, table_name: str) -> Optional[str]:
        url = self._url(table_name)
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            log_error(f"Schema download failed: {url}", type(e).__name__, traceback.format_exc())
            return None

    def _cache_path(self, table_name: str) -> str:
        return os.path.join(self.cache_dir, f"{table_name}{SCHEMA_FILE_SUFFIX}")

    def _load_cache(self, table_name: str) -> Optional[str]:
        path = self._cache_path(table_name)
        if os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    return f.read()
            except OSError:
                return None
        return None

    def _save_cache(self, table_name: str, text: str) -> None:
        with open(self._cache_path(table_name), "w", encoding="utf-8") as f:
            f.write(text)
