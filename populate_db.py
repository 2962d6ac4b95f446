import json
import logging
import os
import sys

from app.database import engine, SessionLocal, Base
from app.models import Coffee, PriceHistory, utcnow
from app.schemas import CoffeeCreate, PriceHistorySeed

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SEED_FILE = os.getenv("SEED_FILE", "seed-data.json")


def load_seed(path: str) -> list:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    coffees = data.get("coffees") if isinstance(data, dict) else None
    if not isinstance(coffees, list):
        raise ValueError("Неверный формат seed-файла, ожидается { coffees: [...] }")
    return coffees


def populate(db, coffees: list) -> int:
    """
    Очищает таблицы и заново заполняет их. Если у кофе в seed-файле есть
    своя priceHistory — переносим её как есть, иначе создаём одну запись
    с текущей ценой. Возвращает количество созданных кофе.
    """
    db.query(PriceHistory).delete()
    db.query(Coffee).delete()

    for raw in coffees:
        raw = dict(raw)
        history = raw.pop("priceHistory", None) or []
        item = CoffeeCreate.model_validate(raw)

        coffee = Coffee(
            name=item.name,
            roaster=item.roaster,
            roast_level=item.roast_level.value,
            origin=item.origin,
            current_price=item.current_price,
            weight=item.weight,
            description=item.description,
            tasting_notes=list(item.tasting_notes),
            in_stock=item.in_stock,
        )
        if history:
            for raw_entry in history:
                entry = PriceHistorySeed.model_validate(raw_entry)
                coffee.price_history.append(PriceHistory(
                    price=entry.price,
                    effective_date=entry.effective_date or utcnow(),
                ))
        else:
            coffee.price_history.append(PriceHistory(price=item.current_price, effective_date=utcnow()))
        db.add(coffee)
        logger.info("Кофе %s: записей истории цен %d", item.name, len(coffee.price_history))

    db.commit()
    return len(coffees)


def main():
    # 1) Создаём таблицы, если их нет
    Base.metadata.create_all(bind=engine)

    coffees = load_seed(sys.argv[1] if len(sys.argv) > 1 else SEED_FILE)
    logger.info("Найдено %d кофе для загрузки", len(coffees))

    db = SessionLocal()
    try:
        count = populate(db, coffees)
    except Exception:
        db.rollback()
        logger.exception("Не удалось заполнить базу")
        raise
    finally:
        db.close()
    logger.info("Загружено кофе: %d", count)


if __name__ == "__main__":
    main()
