"""
通知服务测试

测试覆盖：
1. notify_* 立即返回，邮件在后台任务中发送
2. 发送失败只记录日志，不向调用方传播
3. drain() 之后没有未完成的任务
"""
import asyncio

import pytest

from src.domain.models import Event, MatchResult, UserInfo
from src.services.notification_service import NotificationService, event_type_label
from tests.fakes import RecordingEmailSender

pytestmark = pytest.mark.asyncio

MATCH = MatchResult(
    id="mr-1",
    home_team="FC Domácí",
    away_team="SK Hosté",
    home_score=4,
    away_score=2,
    match_date="2026-04-12",
    created_at="2026-04-12T18:00:00.000Z",
    updated_at="2026-04-12T18:00:00.000Z",
    match_report="První řádek\n<script>",
    author=UserInfo(id=1, first_name="Jan", last_name="Novák"),
)

EVENT = Event(
    id="ev-1",
    name="Letní soustředění",
    event_type="proběhlá",
    date_from="2026-07-01",
    created_at="2026-06-01T10:00:00.000Z",
    updated_at="2026-06-01T10:00:00.000Z",
)


class TestNotificationService:
    async def test_notify_is_fire_and_forget(self, notifications, email_sender):
        task = notifications.notify_match_result_created(MATCH)

        assert isinstance(task, asyncio.Task)
        assert notifications.pending == 1
        await notifications.drain()

        assert notifications.pending == 0
        assert email_sender.subjects == ["Nový výsledek: FC Domácí 4:2 SK Hosté"]
        html = email_sender.sent[0]["html"]
        assert "&lt;script&gt;" in html
        assert "<script>" not in html

    async def test_update_subjects(self, notifications, email_sender):
        notifications.notify_match_result_updated(MATCH)
        notifications.notify_event_updated(EVENT)
        await notifications.drain()

        assert sorted(email_sender.subjects) == [
            "Událost upravena: Letní soustředění",
            "Výsledek upraven: FC Domácí 4:2 SK Hosté",
        ]

    async def test_failing_sender_is_contained(self):
        service = NotificationService(RecordingEmailSender(failing=True))

        task = service.notify_event_created(EVENT)
        await service.drain()

        assert task.done()
        assert task.exception() is None
        assert service.pending == 0

    async def test_template_error_is_contained(self, email_sender):
        service = NotificationService(email_sender)

        task = service.schedule("broken", service._deliver("Předmět", "neexistuje.html.jinja2"))
        await service.drain()

        assert task.exception() is None
        assert email_sender.sent == []

    async def test_event_type_label(self):
        assert event_type_label(EVENT) == "Proběhlá"
