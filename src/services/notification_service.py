"""
通知服务（邮件）

- 每个 notify_* 方法创建后台任务后立即返回，调用方从不等待邮件发送
- 任务在完成前保存在集合中，避免被垃圾回收
- 任务内的任何失败只记录日志，不会影响已返回的业务结果
- drain() 等待所有未完成的任务（应用关闭与测试时使用）
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Dict, Optional, Protocol, Sequence, Set

from src.domain.models import Comment, Event, EventType, MatchResult, Tournament, User
from src.infra.email.templates import EmailTemplateLoader

logger = logging.getLogger(__name__)

ENTITY_TYPE_LABELS: Dict[str, str] = {
    "matchResult": "výsledek zápasu",
    "tournament": "turnaj",
    "event": "událost",
}


class EmailSender(Protocol):
    async def send(
        self,
        subject: str,
        html: str,
        extra_recipients: Optional[Sequence[str]] = None,
    ) -> bool: ...


def event_type_label(event: Event) -> str:
    return "Nadcházející" if event.event_type == EventType.UPCOMING.value else "Proběhlá"


def match_score_line(match: MatchResult) -> str:
    return f"{match.home_team} {match.home_score}:{match.away_score} {match.away_team}"


class NotificationService:
    def __init__(self, sender: EmailSender, loader: Any = EmailTemplateLoader):
        self.sender = sender
        self.loader = loader
        self._tasks: Set[asyncio.Task] = set()

    # ==================== 任务管理 ====================

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, name: str, coro: Awaitable[Any]) -> asyncio.Task:
        """把协程作为后台任务执行；异常在任务内记录"""

        async def runner():
            try:
                await coro
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Notification '{name}' failed: {e}", exc_info=True)

        task = asyncio.create_task(runner(), name=f"notify:{name}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """等待当前所有通知任务结束"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _deliver(
        self,
        subject: str,
        template: str,
        extra_recipients: Optional[Sequence[str]] = None,
        **context: Any,
    ) -> None:
        html = self.loader.render(template, subject=subject, **context)
        sent = await self.sender.send(subject, html, extra_recipients)
        if not sent:
            logger.info(f"Notification not delivered: {subject}")

    def _send(
        self,
        name: str,
        subject: str,
        template: str,
        extra_recipients: Optional[Sequence[str]] = None,
        **context: Any,
    ) -> asyncio.Task:
        return self.schedule(name, self._deliver(subject, template, extra_recipients, **context))

    # ==================== 用户 ====================

    def notify_user_registered(self, user: User) -> asyncio.Task:
        name = f"{user.first_name} {user.last_name}".strip() or user.email
        return self._send(
            "user_registered",
            f"Nový uživatel: {name}",
            "user_registered.html.jinja2",
            user=user,
        )

    # ==================== 赛事 ====================

    def notify_tournament_created(self, tournament: Tournament, match_count: int = 0) -> asyncio.Task:
        return self._send(
            "tournament_created",
            f"Nový turnaj: {tournament.name}",
            "tournament.html.jinja2",
            tournament=tournament,
            match_count=match_count,
            updated=False,
        )

    def notify_tournament_updated(self, tournament: Tournament, match_count: int = 0) -> asyncio.Task:
        return self._send(
            "tournament_updated",
            f"Turnaj upraven: {tournament.name}",
            "tournament.html.jinja2",
            tournament=tournament,
            match_count=match_count,
            updated=True,
        )

    # ==================== 比赛结果 ====================

    def notify_match_result_created(self, match: MatchResult) -> asyncio.Task:
        return self._send(
            "match_result_created",
            f"Nový výsledek: {match_score_line(match)}",
            "match_result.html.jinja2",
            match=match,
            updated=False,
        )

    def notify_match_result_updated(self, match: MatchResult) -> asyncio.Task:
        return self._send(
            "match_result_updated",
            f"Výsledek upraven: {match_score_line(match)}",
            "match_result.html.jinja2",
            match=match,
            updated=True,
        )

    # ==================== 活动 ====================

    def notify_event_created(self, event: Event) -> asyncio.Task:
        return self._send(
            "event_created",
            f"Nová událost: {event.name}",
            "event.html.jinja2",
            event=event,
            event_type_label=event_type_label(event),
            updated=False,
        )

    def notify_event_updated(self, event: Event) -> asyncio.Task:
        return self._send(
            "event_updated",
            f"Událost upravena: {event.name}",
            "event.html.jinja2",
            event=event,
            event_type_label=event_type_label(event),
            updated=True,
        )

    # ==================== 评论 ====================

    def build_comment_added(
        self,
        comment: Comment,
        entity_type: str,
        entity_name: str,
        entity_author_email: Optional[str] = None,
    ) -> Awaitable[None]:
        """评论通知的协程；评论服务在解析实体名称的后台任务中直接等待它"""
        extra = [entity_author_email] if entity_author_email else None
        return self._deliver(
            f"Nový komentář k: {entity_name}",
            "comment_added.html.jinja2",
            extra,
            comment=comment,
            entity_type_label=ENTITY_TYPE_LABELS.get(entity_type, entity_type),
            entity_name=entity_name,
        )
