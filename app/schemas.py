# app/schemas.py

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, conint, constr, condecimal
from pydantic.alias_generators import to_camel

from .models import RoastLevel


Name = constr(strip_whitespace=True, min_length=1, max_length=200)
Price = condecimal(ge=0, max_digits=10, decimal_places=2)
Weight = conint(ge=0)


class CamelModel(BaseModel):
    """
    Наружу (JSON) поля уходят в camelCase: roastLevel, currentPrice и т.д.
    Внутри кода работаем со snake_case.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CoffeeBase(CamelModel):
    name: Name
    roaster: Name
    roast_level: RoastLevel
    origin: Optional[constr(max_length=150)] = None
    current_price: Price
    weight: Weight = 340
    description: Optional[str] = None
    tasting_notes: List[str] = []
    in_stock: bool = True


class CoffeeCreate(CoffeeBase):
    """
    Схема для создания нового кофе. Обязательные поля: name, roaster,
    roastLevel, currentPrice. Первая запись истории цен создаётся автоматически.
    """
    pass


class CoffeeUpdate(CamelModel):
    """
    Схема для обновления кофе. Все поля опциональные (можно передать только часть).
    """
    name: Optional[Name] = None
    roaster: Optional[Name] = None
    roast_level: Optional[RoastLevel] = None
    origin: Optional[constr(max_length=150)] = None
    current_price: Optional[Price] = None
    weight: Optional[Weight] = None
    description: Optional[str] = None
    tasting_notes: Optional[List[str]] = None
    in_stock: Optional[bool] = None


class PriceHistorySeed(CamelModel):
    """Запись истории цен из seed-файла; без даты берётся текущее время."""
    price: Price
    effective_date: Optional[datetime] = None


class PriceHistoryRead(CamelModel):
    id: int
    coffee_id: int
    price: Price
    effective_date: datetime


class CoffeeRead(CoffeeBase):
    """
    Схема для выдачи клиенту (в списке): к базовым полям добавляем id, created_at, updated_at.
    """
    id: int
    created_at: datetime
    updated_at: datetime


class CoffeeDetail(CoffeeRead):
    """Один кофе вместе с историей цен (от старых к новым)."""
    price_history: List[PriceHistoryRead] = []
