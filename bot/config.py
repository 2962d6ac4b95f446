from dotenv import load_dotenv
import os

load_dotenv()

TOKEN = os.getenv("TOKEN")
FASTAPI_URL = os.getenv("FASTAPI_URL", "http://127.0.0.1:8000")
# Таймаут запросов к API каталога, секунды
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "10"))
# Пауза после последнего ввода, прежде чем применить поиск
SEARCH_DEBOUNCE_SECONDS = float(os.getenv("SEARCH_DEBOUNCE_SECONDS", "0.3"))
