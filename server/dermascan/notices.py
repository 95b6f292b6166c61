"""用户提示 — 短暂显示的通知（toast），所有客户端失败都转成一条 Notice。"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


class NoticeBoard:
    """收集待显示的通知，由界面层取走。"""

    def __init__(self) -> None:
        self._pending: list[Notice] = []

    def push(
        self,
        title: str,
        description: str,
        variant: Literal["default", "destructive"] = "default",
    ) -> Notice:
        notice = Notice(title, description, variant)
        if variant == "destructive":
            logger.warning("Notice: %s - %s", title, description)
        else:
            logger.info("Notice: %s - %s", title, description)
        self._pending.append(notice)
        return notice

    def error(self, title: str, description: str) -> Notice:
        return self.push(title, description, "destructive")

    @property
    def pending(self) -> list[Notice]:
        return list(self._pending)

    def drain(self) -> list[Notice]:
        """取走全部待显示通知。"""
        notices, self._pending = self._pending, []
        return notices
