import enum
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    Text,
    Numeric,
    Boolean,
    DateTime,
    ForeignKey,
    func,
)
from sqlalchemy.orm import relationship
from .database import Base


class RoastLevel(str, enum.Enum):
    light = "light"
    medium = "medium"
    medium_dark = "medium-dark"
    dark = "dark"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Coffee(Base):
    __tablename__ = "coffees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    roaster = Column(String(200), nullable=False, index=True)
    # Значения — RoastLevel.value; храним строкой, чтобы сортировка была по алфавиту
    roast_level = Column(String(20), nullable=False, index=True)
    origin = Column(String(150), nullable=True)
    current_price = Column(Numeric(10, 2), nullable=False)
    weight = Column(Integer, nullable=False, default=340)  # граммы
    description = Column(Text, nullable=True)
    tasting_notes = Column(JSON, nullable=False, default=list)
    in_stock = Column(Boolean, default=True, nullable=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    price_history = relationship(
        "PriceHistory",
        back_populates="coffee",
        cascade="all, delete-orphan",
        order_by=lambda: [PriceHistory.effective_date, PriceHistory.id],
    )


class PriceHistory(Base):
    """
    Запись истории цен: цена, действующая начиная с effective_date.
    Строки не редактируются и удаляются только вместе со своим кофе.
    """
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, index=True)
    coffee_id = Column(
        Integer,
        ForeignKey("coffees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    price = Column(Numeric(10, 2), nullable=False)
    effective_date = Column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    coffee = relationship("Coffee", back_populates="price_history")
