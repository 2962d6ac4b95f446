import logging
from typing import List, Optional

import httpx

from bot.config import FASTAPI_URL, API_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class CatalogClientError(Exception):
    """Запрос к API каталога не удался (сеть или не-2xx ответ)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CatalogClient:
    """
    Асинхронный клиент REST API каталога. Возвращает JSON как есть
    (словари с camelCase-ключами).
    """

    def __init__(self, base_url: str = FASTAPI_URL, client: Optional[httpx.AsyncClient] = None):
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=API_TIMEOUT_SECONDS)

    async def close(self):
        await self._client.aclose()

    async def _get(self, path: str, params: Optional[dict] = None):
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.exception("Ошибка запроса %s: %s", path, e)
            raise CatalogClientError(f"API недоступно: {e}") from e

        if response.is_error:
            try:
                message = response.json().get("error")
            except ValueError:
                message = None
            raise CatalogClientError(
                message or f"API вернуло {response.status_code}",
                status_code=response.status_code,
            )
        return response.json()

    async def list_coffees(
        self,
        roaster: Optional[str] = None,
        roast_level: Optional[str] = None,
        search: Optional[str] = None,
        in_stock: Optional[bool] = None,
    ) -> List[dict]:
        params = {}
        if roaster:
            params["roaster"] = roaster
        if roast_level:
            params["roastLevel"] = roast_level
        if search:
            params["search"] = search
        if in_stock is not None:
            params["inStock"] = "true" if in_stock else "false"
        return await self._get("/api/coffees", params=params)

    async def get_coffee(self, coffee_id: int) -> dict:
        return await self._get(f"/api/coffees/{coffee_id}")
