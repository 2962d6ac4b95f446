import logging
from dataclasses import dataclass
from typing import List, Optional

from bot.api_client import CatalogClient, CatalogClientError

logger = logging.getLogger(__name__)

OVERLAY_CLOSED = "closed"
OVERLAY_OPEN = "open"

LIST_ERROR = "Не удалось загрузить каталог. Попробуйте позже."
DETAILS_ERROR = "Не удалось загрузить описание кофе."


@dataclass
class FilterState:
    """Пустая строка означает, что фильтр не задан."""
    roaster: str = ""
    roast_level: str = ""
    query: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.roaster or self.roast_level or self.query)


def matches(coffee: dict, filters: FilterState) -> bool:
    if filters.roaster and coffee.get("roaster") != filters.roaster:
        return False
    if filters.roast_level and coffee.get("roastLevel") != filters.roast_level:
        return False
    if filters.query:
        needle = filters.query.lower()
        haystack = (coffee.get("name"), coffee.get("roaster"), coffee.get("origin"))
        if not any(value and needle in value.lower() for value in haystack):
            return False
    return True


def apply_filters(coffees: List[dict], filters: FilterState) -> List[dict]:
    """Каждый раз фильтруем весь список заново."""
    return [coffee for coffee in coffees if matches(coffee, filters)]


class CatalogBrowser:
    """
    Состояние каталога для одного чата: полный список из API, активные
    фильтры, видимая часть списка, карточка с подробностями (overlay)
    и временное сообщение об ошибке.
    """

    def __init__(self, client: CatalogClient):
        self.client = client
        self.coffees: List[dict] = []
        self.filtered: List[dict] = []
        self.filters = FilterState()
        self.loading = False
        self.notice: Optional[str] = None
        self.overlay_state = OVERLAY_CLOSED
        self.details: Optional[dict] = None
        # обжарщики в том порядке, в каком их показал последний открытый список
        self.roaster_picker: List[str] = []

    async def refresh(self) -> bool:
        """
        Загружает полный список. При ошибке прежний список остаётся на месте,
        а пользователю показывается notice.
        """
        self.loading = True
        self.notice = None
        try:
            coffees = await self.client.list_coffees()
        except CatalogClientError as e:
            logger.warning("Не удалось обновить каталог: %s", e)
            self.notice = LIST_ERROR
            return False
        finally:
            self.loading = False
        self.coffees = coffees
        self.apply_filters()
        return True

    def apply_filters(self) -> List[dict]:
        self.filtered = apply_filters(self.coffees, self.filters)
        return self.filtered

    def set_roaster(self, roaster: str) -> List[dict]:
        self.filters.roaster = roaster or ""
        return self.apply_filters()

    def set_roast_level(self, roast_level: str) -> List[dict]:
        self.filters.roast_level = roast_level or ""
        return self.apply_filters()

    def set_query(self, query: str) -> List[dict]:
        self.filters.query = (query or "").strip()
        return self.apply_filters()

    def reset_filters(self) -> List[dict]:
        self.filters = FilterState()
        return self.apply_filters()

    def roaster_options(self) -> List[str]:
        return sorted({c["roaster"] for c in self.coffees if c.get("roaster")})

    def open_roaster_picker(self) -> List[str]:
        self.roaster_picker = self.roaster_options()
        return self.roaster_picker

    def pick_roaster(self, index: int) -> Optional[str]:
        """
        Выбор по номеру кнопки из последнего показанного списка. Каталог мог
        обновиться после показа, поэтому текущие roaster_options не годятся.
        None, если такого номера в показанном списке нет.
        """
        if not 0 <= index < len(self.roaster_picker):
            return None
        roaster = self.roaster_picker[index]
        self.set_roaster(roaster)
        return roaster

    def roast_level_options(self) -> List[str]:
        return sorted({c["roastLevel"] for c in self.coffees if c.get("roastLevel")})

    def results_summary(self) -> str:
        return f"Показано {len(self.filtered)} из {len(self.coffees)}"

    @property
    def overlay_open(self) -> bool:
        return self.overlay_state == OVERLAY_OPEN

    async def open_details(self, coffee_id: int) -> Optional[dict]:
        """
        closed -> open только при успешной загрузке подробностей.
        При ошибке overlay остаётся закрытым, выставляется notice.
        """
        try:
            details = await self.client.get_coffee(coffee_id)
        except CatalogClientError as e:
            logger.warning("Не удалось загрузить кофе %s: %s", coffee_id, e)
            self.close_details()
            self.notice = DETAILS_ERROR
            return None
        self.details = details
        self.overlay_state = OVERLAY_OPEN
        return details

    def close_details(self):
        # Список и фильтры не трогаем
        self.details = None
        self.overlay_state = OVERLAY_CLOSED

    def dismiss_notice(self):
        self.notice = None
