"""
Routing Catalog Sources
=======================

External sources for the routing catalog:
- YAML catalog file loader with hot reload (watchdog)
"""

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from legal_triage.core import ConfigurationException
from legal_triage.routing.application import (
    IRoutingCatalogProvider, RoutingCatalog, RoutingCatalogSchema
)
from legal_triage.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CatalogFileHandler(FileSystemEventHandler):
    """Watchdog event handler for catalog file changes."""

    def __init__(self, manager: "RoutingCatalogManager", catalog_path: Path):
        self.manager = manager
        self.catalog_path = catalog_path
        super().__init__()

    def on_modified(self, event):
        """Handle file modification event."""
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.catalog_path.resolve():
            logger.info(f"Catalog file changed: {event.src_path}")
            self.manager.reload()


class RoutingCatalogManager(IRoutingCatalogProvider):
    """
    Thread-safe routing catalog holder with hot-reload support.

    A reload parses the whole file and swaps the snapshot in one step, so
    a triage run that already took its snapshot never sees a partial
    update.
    """

    def __init__(self):
        self._catalog: Optional[RoutingCatalog] = None
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> RoutingCatalog:
        """Initial catalog load; invalid content fails fast."""
        self._path = path
        catalog = self._load_from_file(path)
        with self._lock:
            self._catalog = catalog
        return catalog

    def _load_from_file(self, path: Path) -> RoutingCatalog:
        """Load and validate the YAML catalog."""
        if not path.exists():
            logger.warning(f"Routing catalog not found: {path}, using an empty catalog")
            return RoutingCatalog(loaded_at=datetime.now(timezone.utc))

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Malformed routing catalog {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationException(f"Routing catalog {path} must be a mapping")

        try:
            schema = RoutingCatalogSchema(**data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid routing catalog {path}",
                {"errors": e.errors(include_url=False)}
            ) from e

        catalog = RoutingCatalog.from_schema(schema, loaded_at=datetime.now(timezone.utc))
        logger.info(
            "Routing catalog loaded",
            extra={
                "path": str(path),
                "rules": len(catalog.rules),
                "legal_terms": len(catalog.legal_terms),
                "specialists": len(catalog.specialists),
                "employees": len(catalog.employees),
            }
        )
        return catalog

    def reload(self) -> bool:
        """Reload the catalog, keeping the previous snapshot on failure."""
        if self._path is None:
            return False

        try:
            new_catalog = self._load_from_file(self._path)
        except Exception as e:
            logger.error(f"Failed to reload routing catalog: {e}")
            return False

        with self._lock:
            self._catalog = new_catalog
        logger.info("Routing catalog reloaded successfully")
        return True

    def start_watching(self) -> None:
        """
        Start watching the catalog file for changes.

        Skips watching when the file does not exist or the platform does
        not support file notifications.
        """
        if self._path is None:
            raise RuntimeError("Catalog not loaded. Call load() first.")

        if not self._path.exists():
            logger.info(f"Catalog file doesn't exist, skipping file watch: {self._path}")
            return

        try:
            self._observer = Observer()
            handler = CatalogFileHandler(self, self._path)
            self._observer.schedule(handler, str(self._path.parent), recursive=False)
            self._observer.start()
            logger.info(f"Started watching catalog file: {self._path}")
        except OSError as e:
            logger.warning(f"File watching not available, using static catalog: {e}")
            self._observer = None

    def stop_watching(self) -> None:
        """Stop watching (safe to call even if not watching)."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    def snapshot(self) -> RoutingCatalog:
        """Get the current catalog snapshot."""
        with self._lock:
            catalog = self._catalog
        if catalog is None:
            raise RuntimeError("Routing catalog not loaded")
        return catalog

