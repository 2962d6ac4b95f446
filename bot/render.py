"""
Тексты сообщений каталога (Telegram HTML). Все пользовательские данные
экранируются через html.escape.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from html import escape
from typing import List

# Сколько вкусовых нот показываем в карточке списка
CARD_NOTES_LIMIT = 3

ROAST_LEVEL_ICONS = {
    "light": "🟡",
    "medium": "🟠",
    "medium-dark": "🟤",
    "dark": "⚫",
}


def capitalize_roast_level(roast_level: str) -> str:
    return "-".join(word[:1].upper() + word[1:] for word in (roast_level or "").split("-"))


def format_price(value) -> str:
    try:
        return f"${Decimal(str(value)):.2f}"
    except (InvalidOperation, ValueError):
        return f"${value}"


def format_date(value) -> str:
    if isinstance(value, datetime):
        return value.strftime("%d.%m.%Y")
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).strftime("%d.%m.%Y")
    except ValueError:
        return str(value)


def stock_badge(coffee: dict) -> str:
    return "✅ В наличии" if coffee.get("inStock") else "❌ Нет в наличии"


def roast_level_label(roast_level: str) -> str:
    icon = ROAST_LEVEL_ICONS.get(roast_level, "⚪")
    return f"{icon} {capitalize_roast_level(roast_level)}"


def tasting_notes_preview(notes: List[str], limit: int = CARD_NOTES_LIMIT) -> str:
    if not notes:
        return ""
    text = ", ".join(escape(note) for note in notes[:limit])
    if len(notes) > limit:
        text += f" +{len(notes) - limit} ещё"
    return text


def coffee_card(coffee: dict) -> str:
    """Короткая карточка для списка."""
    lines = [f"<b>☕ {escape(coffee['name'])}</b> · {stock_badge(coffee)}"]
    lines.append(escape(coffee.get("roaster") or ""))
    if coffee.get("origin"):
        lines.append(f"<b>Происхождение:</b> {escape(coffee['origin'])}")
    lines.append(f"{roast_level_label(coffee.get('roastLevel', ''))} · {coffee.get('weight', 340)} г")
    notes = tasting_notes_preview(coffee.get("tastingNotes") or [])
    if notes:
        lines.append(f"<b>Вкусовые ноты:</b> {notes}")
    if coffee.get("description"):
        lines.append(f"<i>{escape(coffee['description'])}</i>")
    lines.append(f"<b>💰 {format_price(coffee.get('currentPrice'))}</b>")
    return "\n".join(lines)


def empty_results() -> str:
    return "<b>Ничего не найдено</b>\nПопробуйте изменить фильтры или поисковый запрос."


def coffee_list(coffees: List[dict], summary: str) -> str:
    if not coffees:
        return empty_results()
    cards = "\n\n".join(coffee_card(coffee) for coffee in coffees)
    return f"{cards}\n\n<i>{escape(summary)}</i>"


def price_history_table(history: List[dict]) -> str:
    """История цен от новых к старым (API отдаёт от старых к новым)."""
    rows = [
        f"{format_date(entry.get('effectiveDate'))} — {format_price(entry.get('price'))}"
        for entry in reversed(history)
    ]
    return "\n".join(rows)


def coffee_details(coffee: dict) -> str:
    """Подробная карточка (overlay)."""
    lines = [f"<b>☕ {escape(coffee['name'])}</b>", ""]
    lines.append(f"<b>Обжарщик:</b> {escape(coffee.get('roaster') or '')}")
    if coffee.get("origin"):
        lines.append(f"<b>Происхождение:</b> {escape(coffee['origin'])}")
    lines.append(f"<b>Обжарка:</b> {roast_level_label(coffee.get('roastLevel', ''))}")
    lines.append(f"<b>Вес:</b> {coffee.get('weight', 340)} г")
    if coffee.get("description"):
        lines += ["", f"<i>{escape(coffee['description'])}</i>"]
    notes = coffee.get("tastingNotes") or []
    if notes:
        lines += ["", "<b>Вкусовые ноты:</b> " + ", ".join(escape(n) for n in notes)]
    lines += ["", f"<b>💰 {format_price(coffee.get('currentPrice'))}</b> · {stock_badge(coffee)}"]
    history = coffee.get("priceHistory") or []
    if history:
        lines += ["", "<b>История цен:</b>", price_history_table(history)]
    return "\n".join(lines)


MAX_MESSAGE_LENGTH = 4096


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Telegram не принимает сообщения длиннее 4096 символов. Режем по границе
    карточек (пустая строка), иначе по переводу строки, иначе жёстко.
    """
    parts = []
    while len(text) > limit:
        split_index = text.rfind("\n\n", 0, limit)
        if split_index == -1:
            split_index = text.rfind("\n", 0, limit)
        if split_index <= 0:
            split_index = limit
        parts.append(text[:split_index])
        text = text[split_index:].lstrip()
    parts.append(text)
    return parts
