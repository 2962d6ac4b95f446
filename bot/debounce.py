import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[], Union[Any, Awaitable[Any]]]


class Debouncer:
    """
    Отложенная задача, которую можно отменить и перезапланировать.
    Каждый новый schedule() отменяет предыдущий вызов; callback выполняется,
    только когда после последнего schedule() прошло delay секунд.
    """

    def __init__(self, delay: float):
        self.delay = delay
        self._task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, callback: Callback) -> asyncio.Task:
        self.cancel()
        self._task = asyncio.create_task(self._run(callback))
        return self._task

    def cancel(self):
        if self.pending:
            self._task.cancel()
        self._task = None

    async def _run(self, callback: Callback):
        await asyncio.sleep(self.delay)
        # Ожидание закончилось: новый schedule() уже не отменяет этот вызов
        self._task = None
        try:
            result = callback()
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.exception("Ошибка в отложенной задаче: %s", e)
