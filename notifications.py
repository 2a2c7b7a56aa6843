# -*- coding: utf-8 -*-
"""
notifications.py — Canal de notificações (toasts) do app.

- notify(message, kind): kind em {'success', 'error'}; devolve o id da notificação.
- Cada notificação expira sozinha após 'timeout' segundos (padrão: settings.toast_seconds()).
- dismiss(id): fechamento manual.
- active(): notificações ainda visíveis (expiradas são descartadas na leitura).
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import settings

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"
KINDS = (SUCCESS, ERROR)


@dataclass(frozen=True)
class Notification:
    id: int
    message: str
    kind: str
    created_at: float
    expires_at: float


class Notifier:
    def __init__(self, timeout: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.timeout = float(timeout) if timeout is not None else settings.toast_seconds()
        self._clock = clock
        self._ids = itertools.count(1)
        self._items: List[Notification] = []

    def notify(self, message: str, kind: str) -> int:
        if kind not in KINDS:
            raise ValueError(f"Tipo de notificação inválido: {kind!r}")
        now = self._clock()
        item = Notification(next(self._ids), str(message), kind, now, now + self.timeout)
        self._items = [n for n in self._items if n.expires_at > now]
        self._items.append(item)
        log = logger.warning if kind == ERROR else logger.info
        log("[%s] %s", kind, message)
        return item.id

    def success(self, message: str) -> int:
        return self.notify(message, SUCCESS)

    def error(self, message: str) -> int:
        return self.notify(message, ERROR)

    def dismiss(self, notification_id: int) -> bool:
        before = len(self._items)
        self._items = [n for n in self._items if n.id != notification_id]
        return len(self._items) < before

    def active(self) -> List[Notification]:
        now = self._clock()
        self._items = [n for n in self._items if n.expires_at > now]
        return list(self._items)

    def clear(self) -> None:
        self._items = []
