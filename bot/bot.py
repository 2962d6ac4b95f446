import asyncio
import logging

from aiogram import Bot, Dispatcher, types
from aiogram.client.bot import DefaultBotProperties
from aiogram.enums import ChatAction, ParseMode
from aiogram.filters import Command
from aiogram.fsm.state import State, StatesGroup
from aiogram.fsm.context import FSMContext

from bot import render
from bot.api_client import CatalogClient
from bot.browser import CatalogBrowser
from bot.config import TOKEN, SEARCH_DEBOUNCE_SECONDS
from bot.debounce import Debouncer


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


bot = Bot(token=TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
dp = Dispatcher()
api = CatalogClient()

# chat_id -> состояние каталога / отложенный поиск / сообщение с карточкой
BROWSERS = {}
DEBOUNCERS = {}
OVERLAY_MESSAGES = {}

ALL_VALUES = "*"


# Фоновая задача: каждые 10h сбрасываем состояние чатов
async def clear_cache_periodically():
    while True:
        await asyncio.sleep(10 * 3600)
        for debouncer in DEBOUNCERS.values():
            debouncer.cancel()
        BROWSERS.clear()
        DEBOUNCERS.clear()
        OVERLAY_MESSAGES.clear()
        logger.info("Кеш (BROWSERS) очищен.")


#FSM-Состояния
class SearchForm(StatesGroup):
    waiting_for_query = State()


def get_browser(chat_id: int) -> CatalogBrowser:
    if chat_id not in BROWSERS:
        BROWSERS[chat_id] = CatalogBrowser(api)
    return BROWSERS[chat_id]


def get_debouncer(chat_id: int) -> Debouncer:
    if chat_id not in DEBOUNCERS:
        DEBOUNCERS[chat_id] = Debouncer(SEARCH_DEBOUNCE_SECONDS)
    return DEBOUNCERS[chat_id]


#Формирование клавиатур
def main_menu_reply() -> types.ReplyKeyboardMarkup:
    buttons = [
        [types.KeyboardButton(text="Каталог"), types.KeyboardButton(text="Поиск")],
        [types.KeyboardButton(text="Обжарщик"), types.KeyboardButton(text="Обжарка")],
        [types.KeyboardButton(text="Сбросить фильтры")]
    ]
    return types.ReplyKeyboardMarkup(keyboard=buttons, resize_keyboard=True)


def coffee_list_inline(browser: CatalogBrowser) -> types.InlineKeyboardMarkup:
    """
    Inline-клавиатура с отфильтрованными товарами: по кнопке — подробности.
    """
    buttons = [
        [types.InlineKeyboardButton(text=coffee["name"], callback_data=f"item:{coffee['id']}")]
        for coffee in browser.filtered
    ]
    buttons.append([types.InlineKeyboardButton(text="Обновить", callback_data="refresh")])
    return types.InlineKeyboardMarkup(inline_keyboard=buttons)


def roaster_filter_inline(browser: CatalogBrowser) -> types.InlineKeyboardMarkup:
    """
    Список обжарщиков. В callback_data кладём индекс: имя может не влезть в 64 байта.
    """
    buttons = [[types.InlineKeyboardButton(text="Все обжарщики", callback_data=f"roaster:{ALL_VALUES}")]]
    for index, roaster in enumerate(browser.open_roaster_picker()):
        mark = "✓ " if roaster == browser.filters.roaster else ""
        buttons.append([types.InlineKeyboardButton(text=mark + roaster, callback_data=f"roaster:{index}")])
    return types.InlineKeyboardMarkup(inline_keyboard=buttons)


def roast_level_filter_inline(browser: CatalogBrowser) -> types.InlineKeyboardMarkup:
    buttons = [[types.InlineKeyboardButton(text="Любая обжарка", callback_data=f"level:{ALL_VALUES}")]]
    for level in browser.roast_level_options():
        mark = "✓ " if level == browser.filters.roast_level else ""
        buttons.append([types.InlineKeyboardButton(
            text=mark + render.roast_level_label(level),
            callback_data=f"level:{level}"
        )])
    return types.InlineKeyboardMarkup(inline_keyboard=buttons)


def details_inline() -> types.InlineKeyboardMarkup:
    return types.InlineKeyboardMarkup(inline_keyboard=[
        [types.InlineKeyboardButton(text="Закрыть", callback_data="close_details")]
    ])


def notice_inline() -> types.InlineKeyboardMarkup:
    return types.InlineKeyboardMarkup(inline_keyboard=[
        [types.InlineKeyboardButton(text="OK", callback_data="dismiss_notice")]
    ])


#Вывод
async def send_notice(chat_id: int, browser: CatalogBrowser):
    if browser.notice:
        await bot.send_message(chat_id, f"⚠️ {browser.notice}", reply_markup=notice_inline())


async def close_overlay(chat_id: int, browser: CatalogBrowser):
    """
    Любое действие вне карточки закрывает её. Список и фильтры сохраняются.
    """
    message_id = OVERLAY_MESSAGES.pop(chat_id, None)
    if browser.overlay_open:
        browser.close_details()
    if message_id:
        try:
            await bot.delete_message(chat_id, message_id)
        except Exception as e:
            logger.warning("Не удалось удалить карточку %s: %s", message_id, e)


async def refresh_catalog(chat_id: int, browser: CatalogBrowser) -> bool:
    await bot.send_chat_action(chat_id, ChatAction.TYPING)
    ok = await browser.refresh()
    if not ok:
        await send_notice(chat_id, browser)
    return ok


async def send_catalog(chat_id: int, browser: CatalogBrowser):
    await close_overlay(chat_id, browser)
    text = render.coffee_list(browser.filtered, browser.results_summary())
    parts = render.split_message(text)
    for part in parts[:-1]:
        await bot.send_message(chat_id, part)
    await bot.send_message(chat_id, parts[-1], reply_markup=coffee_list_inline(browser))


#Обработчики message

@dp.message(Command("start"))
async def start(message: types.Message, state: FSMContext):
    await state.clear()
    browser = get_browser(message.chat.id)
    await message.answer(
        "Добро пожаловать в каталог кофе! Выберите нужное действие:",
        reply_markup=main_menu_reply()
    )
    if await refresh_catalog(message.chat.id, browser):
        await send_catalog(message.chat.id, browser)


@dp.message(Command("cancel"))
async def cancel(message: types.Message, state: FSMContext):
    current_state = await state.get_state()
    get_debouncer(message.chat.id).cancel()
    if current_state:
        await state.clear()
        await message.answer("Поиск отменён.", reply_markup=main_menu_reply())
    else:
        await message.answer("Нет активных операций.", reply_markup=main_menu_reply())


@dp.message(lambda message: message.text == "Каталог")
async def catalog(message: types.Message, state: FSMContext):
    await state.clear()
    browser = get_browser(message.chat.id)
    await refresh_catalog(message.chat.id, browser)
    # При ошибке показываем прежний список
    await send_catalog(message.chat.id, browser)


@dp.message(lambda message: message.text == "Обжарщик")
async def choose_roaster(message: types.Message, state: FSMContext):
    await state.clear()
    browser = get_browser(message.chat.id)
    await close_overlay(message.chat.id, browser)
    if not browser.coffees:
        await refresh_catalog(message.chat.id, browser)
    await message.answer("Выберите обжарщика:", reply_markup=roaster_filter_inline(browser))


@dp.message(lambda message: message.text == "Обжарка")
async def choose_roast_level(message: types.Message, state: FSMContext):
    await state.clear()
    browser = get_browser(message.chat.id)
    await close_overlay(message.chat.id, browser)
    if not browser.coffees:
        await refresh_catalog(message.chat.id, browser)
    await message.answer("Выберите степень обжарки:", reply_markup=roast_level_filter_inline(browser))


@dp.message(lambda message: message.text == "Сбросить фильтры")
async def reset_filters(message: types.Message, state: FSMContext):
    await state.clear()
    get_debouncer(message.chat.id).cancel()
    browser = get_browser(message.chat.id)
    browser.reset_filters()
    await send_catalog(message.chat.id, browser)


@dp.message(lambda message: message.text == "Поиск")
async def search_start(message: types.Message, state: FSMContext):
    browser = get_browser(message.chat.id)
    await close_overlay(message.chat.id, browser)
    await message.answer(
        "Введите название, обжарщика или страну (для отмены /cancel).\n"
        "Пустой запрос «-» сбрасывает поиск."
    )
    await state.set_state(SearchForm.waiting_for_query)


@dp.message(SearchForm.waiting_for_query)
async def process_search(message: types.Message):
    """
    Поиск применяется, когда пользователь перестал писать: каждое новое
    сообщение откладывает выполнение на SEARCH_DEBOUNCE_SECONDS.
    """
    chat_id = message.chat.id
    browser = get_browser(chat_id)
    query_text = (message.text or "").strip()
    if query_text == "-":
        query_text = ""

    async def apply_search():
        if not browser.coffees:
            await refresh_catalog(chat_id, browser)
        browser.set_query(query_text)
        await send_catalog(chat_id, browser)

    get_debouncer(chat_id).schedule(apply_search)


#Обработчики callback-запросов
@dp.callback_query(lambda c: c.data == "refresh")
async def refresh_callback(query: types.CallbackQuery):
    await query.answer()
    browser = get_browser(query.message.chat.id)
    await refresh_catalog(query.message.chat.id, browser)
    await send_catalog(query.message.chat.id, browser)


@dp.callback_query(lambda c: c.data and c.data.startswith("roaster:"))
async def roaster_callback(query: types.CallbackQuery):
    await query.answer()
    browser = get_browser(query.message.chat.id)
    value = query.data.split(":", 1)[1]
    if value == ALL_VALUES:
        browser.set_roaster("")
    elif not value.isdigit() or browser.pick_roaster(int(value)) is None:
        await bot.send_message(query.message.chat.id, "Список обжарщиков устарел, откройте его заново.")
        return
    await send_catalog(query.message.chat.id, browser)


@dp.callback_query(lambda c: c.data and c.data.startswith("level:"))
async def roast_level_callback(query: types.CallbackQuery):
    await query.answer()
    browser = get_browser(query.message.chat.id)
    value = query.data.split(":", 1)[1]
    browser.set_roast_level("" if value == ALL_VALUES else value)
    await send_catalog(query.message.chat.id, browser)


@dp.callback_query(lambda c: c.data and c.data.startswith("item:"))
async def item_callback(query: types.CallbackQuery):
    """
    Показываем подробную карточку с историей цен.
    callback_data ожидает "item:<coffee_id>"
    """
    await query.answer()
    chat_id = query.message.chat.id
    try:
        _, coffee_id_str = query.data.split(":")
        coffee_id = int(coffee_id_str)
    except ValueError:
        await bot.send_message(chat_id, "Неверный товар.")
        return

    browser = get_browser(chat_id)
    await close_overlay(chat_id, browser)
    await bot.send_chat_action(chat_id, ChatAction.TYPING)
    details = await browser.open_details(coffee_id)
    if details is None:
        await send_notice(chat_id, browser)
        return

    sent = await bot.send_message(chat_id, render.coffee_details(details), reply_markup=details_inline())
    OVERLAY_MESSAGES[chat_id] = sent.message_id


@dp.callback_query(lambda c: c.data == "close_details")
async def close_details_callback(query: types.CallbackQuery):
    await query.answer()
    chat_id = query.message.chat.id
    browser = get_browser(chat_id)
    OVERLAY_MESSAGES[chat_id] = query.message.message_id
    await close_overlay(chat_id, browser)


@dp.callback_query(lambda c: c.data == "dismiss_notice")
async def dismiss_notice_callback(query: types.CallbackQuery):
    await query.answer()
    get_browser(query.message.chat.id).dismiss_notice()
    try:
        await query.message.delete()
    except Exception as e:
        logger.warning("Не удалось удалить уведомление: %s", e)


# Ловим все остальные текстовые сообщения (не команды и не кнопки меню)
@dp.message(lambda message: message.text and not message.text.startswith("/"))
async def catch_all_messages(message: types.Message):
    await message.answer("Не понял вашу команду. Нажмите /start, чтобы вернуться в главное меню.")


#Запуск бота
async def main():
    try:
        await bot.delete_webhook(drop_pending_updates=True)
    except Exception as e:
        logger.exception("Ошибка удаления webhook: %s", e)
    asyncio.create_task(clear_cache_periodically())
    try:
        await dp.start_polling(bot, skip_updates=True)
    finally:
        await api.close()

if __name__ == "__main__":
    asyncio.run(main())
