import logging
from decimal import Decimal
from typing import List, Optional

from pydantic.alias_generators import to_camel
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .exceptions import CoffeeNotFound, PersistenceError, ValidationError
from .models import Coffee, PriceHistory, utcnow
from .schemas import CoffeeCreate, CoffeeUpdate

logger = logging.getLogger(__name__)

# Эти поля в таблице NOT NULL, явный null в обновлении недопустим
REQUIRED_FIELDS = ("name", "roaster", "roast_level", "current_price", "weight", "tasting_notes", "in_stock")


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Ошибка БД при операции '%s': %s", action, e)
        raise PersistenceError() from e


def get_coffee(db: Session, coffee_id: int) -> Coffee:
    """
    Возвращает кофе по ID вместе с историей цен (от старых к новым).
    Если не найден — CoffeeNotFound.
    """
    try:
        coffee = db.get(Coffee, coffee_id)
    except SQLAlchemyError as e:
        logger.exception("Ошибка получения кофе %s: %s", coffee_id, e)
        raise PersistenceError() from e
    if coffee is None:
        raise CoffeeNotFound()
    return coffee


def get_coffees(
    db: Session,
    roaster: Optional[str] = None,
    roast_level: Optional[str] = None,
    in_stock: Optional[bool] = None,
    search: Optional[str] = None,
) -> List[Coffee]:
    """
    Возвращает список кофе, отсортированный по названию.
    roaster и roast_level — точное совпадение, search — подстрока без учёта
    регистра в name, roaster, origin или description.
    """
    query = db.query(Coffee)
    if roaster:
        query = query.filter(Coffee.roaster == roaster)
    if roast_level:
        query = query.filter(Coffee.roast_level == roast_level)
    if in_stock is not None:
        query = query.filter(Coffee.in_stock == in_stock)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Coffee.name.ilike(pattern),
                Coffee.roaster.ilike(pattern),
                Coffee.origin.ilike(pattern),
                Coffee.description.ilike(pattern),
            )
        )
    try:
        return query.order_by(Coffee.name.asc(), Coffee.id.asc()).all()
    except SQLAlchemyError as e:
        logger.exception("Ошибка получения списка кофе: %s", e)
        raise PersistenceError() from e


def create_coffee(db: Session, coffee: CoffeeCreate) -> Coffee:
    """
    Создаёт новый кофе и первую запись истории цен в одной транзакции.
    """
    new_coffee = Coffee(
        name=coffee.name,
        roaster=coffee.roaster,
        roast_level=coffee.roast_level.value,
        origin=coffee.origin,
        current_price=coffee.current_price,
        weight=coffee.weight,
        description=coffee.description,
        tasting_notes=list(coffee.tasting_notes),
        in_stock=coffee.in_stock,
    )
    new_coffee.price_history.append(
        PriceHistory(price=coffee.current_price, effective_date=utcnow())
    )
    db.add(new_coffee)
    _commit(db, "create")
    db.refresh(new_coffee)
    logger.info("Создан кофе %s (%s), цена %s", new_coffee.id, new_coffee.name, new_coffee.current_price)
    return new_coffee


def update_coffee(db: Session, coffee_id: int, coffee: CoffeeUpdate) -> Coffee:
    """
    Частичное обновление: меняются только переданные поля.
    Если передана новая цена и она отличается от сохранённой,
    в историю добавляется запись с этой ценой.
    """
    db_item = get_coffee(db, coffee_id)
    changes = coffee.model_dump(exclude_unset=True)

    for field in REQUIRED_FIELDS:
        if field in changes and changes[field] is None:
            raise ValidationError(f"{to_camel(field)} cannot be null")

    old_price = Decimal(db_item.current_price)
    new_price = changes.get("current_price")

    for field, value in changes.items():
        if field == "roast_level" and value is not None:
            value = value.value
        setattr(db_item, field, value)

    if new_price is not None and Decimal(new_price) != old_price:
        db_item.price_history.append(
            PriceHistory(price=new_price, effective_date=utcnow())
        )
        logger.info("Цена кофе %s изменена: %s -> %s", coffee_id, old_price, new_price)

    _commit(db, "update")
    db.refresh(db_item)
    return db_item


def delete_coffee(db: Session, coffee_id: int) -> None:
    """
    Удаляет кофе; история цен удаляется каскадно.
    """
    db_item = get_coffee(db, coffee_id)
    db.delete(db_item)
    _commit(db, "delete")
    logger.info("Удалён кофе %s", coffee_id)


def get_all_roasters(db: Session) -> List[str]:
    """
    Возвращает отсортированный список уникальных обжарщиков.
    """
    try:
        rows = db.query(Coffee.roaster).distinct().order_by(Coffee.roaster.asc()).all()
    except SQLAlchemyError as e:
        logger.exception("Ошибка получения обжарщиков: %s", e)
        raise PersistenceError() from e
    # Распакуем кортежи в простой список строк:
    return [row[0] for row in rows]


def get_all_roast_levels(db: Session) -> List[str]:
    try:
        rows = db.query(Coffee.roast_level).distinct().order_by(Coffee.roast_level.asc()).all()
    except SQLAlchemyError as e:
        logger.exception("Ошибка получения степеней обжарки: %s", e)
        raise PersistenceError() from e
    return [row[0] for row in rows]


def get_price_history(db: Session, coffee_id: int) -> List[PriceHistory]:
    """
    История цен одного кофе, от новых к старым. Для несуществующего ID — пустой список.
    """
    try:
        return (
            db.query(PriceHistory)
            .filter(PriceHistory.coffee_id == coffee_id)
            .order_by(PriceHistory.effective_date.desc(), PriceHistory.id.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Ошибка получения истории цен кофе %s: %s", coffee_id, e)
        raise PersistenceError() from e
