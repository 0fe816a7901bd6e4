# flowbuilder/visual/relations.py
"""Server-backed option lookup for relation fields."""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp
import structlog

from flowbuilder.visual.nodes import ToolField

logger = structlog.get_logger(__name__)

LOADING_LABEL = "Loading..."


class RelationLookupError(RuntimeError):
    """Raised when the relation backend answers with an error."""
    pass


class RelationProvider(ABC):
    """Source of options for relation fields."""

    @abstractmethod
    async def search_relation(
        self,
        relation_class: Optional[str],
        search: str,
        page: int,
        filters: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Return ``{"items": [{"id", "label"}, ...], "hasMore": bool}``."""
        pass

    @abstractmethod
    async def get_relation_label(self, relation_class: Optional[str], value: Any) -> Dict[str, Any]:
        """Return ``{"label": str}`` for a stored relation value."""
        pass


class HttpRelationProvider(RelationProvider):
    """Relation provider backed by an HTTP endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(
                f"{self.base_url}{path}",
                params=params,
                headers=self.headers
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise RelationLookupError(
                        f"Relation lookup failed ({response.status}): {error_text}"
                    )
                return await response.json()

    async def search_relation(self, relation_class, search, page, filters):
        params = {"search": search, "page": str(page)}
        if filters:
            params["filter"] = json.dumps(filters)

        data = await self._get(f"/relations/{relation_class}", params)
        return {
            "items": list(data.get("items", [])),
            "hasMore": bool(data.get("hasMore", False)),
        }

    async def get_relation_label(self, relation_class, value):
        data = await self._get(f"/relations/{relation_class}/{quote(str(value), safe='')}")
        return {"label": data.get("label", str(value))}


class RelationLookup:
    """Search state of one relation field.

    Every search bumps ``generation``; responses belonging to an older
    generation are dropped so late answers never overwrite newer results.
    """

    def __init__(
        self,
        field: ToolField,
        provider: Optional[RelationProvider],
        debounce: float = 0.5,
        scroll_threshold: float = 20.0
    ):
        self.field = field
        self.provider = provider
        self.debounce = debounce
        self.scroll_threshold = scroll_threshold

        self.options: List[Dict[str, Any]] = []
        self.page = 1
        self.has_more = True
        self.loading = False
        self.search_term = ""
        self.open = False
        self.initialized = False
        self.selected_label: Optional[str] = None
        self.generation = 0
        self._pending: Optional[asyncio.Task] = None

    @property
    def key(self) -> str:
        return self.field.key

    async def load(self, is_scroll: bool = False) -> bool:
        """Fetch the next page for the current search term."""
        if self.provider is None:
            return False
        if self.loading or (is_scroll and not self.has_more):
            return False

        generation = self.generation
        self.loading = True

        try:
            response = await self.provider.search_relation(
                self.field.relation_class,
                self.search_term,
                self.page,
                dict(self.field.filter)
            )
        except (RelationLookupError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("relation_search_failed", field=self.key, error=str(e))
            return False
        finally:
            # Cleared on every outcome, errors included
            if generation == self.generation:
                self.loading = False

        if generation != self.generation:
            logger.debug("relation_response_discarded", field=self.key, generation=generation)
            return False

        items = list(response.get("items", []))
        self.options = items if self.page == 1 else self.options + items
        self.has_more = bool(response.get("hasMore", False))
        self.page += 1
        return True

    async def _debounced_load(self, generation: int) -> bool:
        await asyncio.sleep(self.debounce)
        if generation != self.generation:
            return False
        return await self.load()

    def search(self, term: str) -> asyncio.Task:
        """Restart the lookup for a new term after the debounce delay.

        Must be called from a running event loop.
        """
        self.search_term = term
        self.page = 1
        self.has_more = True
        self.generation += 1
        self.loading = False

        if self._pending is not None and not self._pending.done():
            self._pending.cancel()

        self._pending = asyncio.get_running_loop().create_task(
            self._debounced_load(self.generation)
        )
        return self._pending

    def near_bottom(self, scroll_height: float, scroll_top: float, client_height: float) -> bool:
        return scroll_height - scroll_top <= client_height + self.scroll_threshold

    async def on_scroll(self, scroll_height: float, scroll_top: float, client_height: float) -> bool:
        """Load another page when the option list is scrolled near its end."""
        if not self.near_bottom(scroll_height, scroll_top, client_height):
            return False
        return await self.load(is_scroll=True)

    async def toggle(self) -> bool:
        """Open or close the option list, loading the first page once."""
        if not self.initialized:
            self.initialized = True
            await self.load()
        self.open = not self.open
        return self.open

    def select(self, item: Dict[str, Any]) -> Any:
        """Pick an option; returns the value to store in the node config."""
        self.selected_label = item.get("label")
        self.open = False
        return item["id"]

    async def resolve_label(self, value: Any) -> Optional[str]:
        """Fetch the display label of an already stored value."""
        if self.selected_label or self.provider is None or value in (None, ""):
            return self.selected_label

        self.selected_label = LOADING_LABEL
        try:
            response = await self.provider.get_relation_label(self.field.relation_class, value)
        except (RelationLookupError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("relation_label_failed", field=self.key, value=value, error=str(e))
            self.selected_label = str(value)
            return self.selected_label

        self.selected_label = response.get("label", str(value))
        return self.selected_label
