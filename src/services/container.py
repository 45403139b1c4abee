"""
服务容器（组合根）

应用启动时构造一次并保存在 app.state 上：
- 服务令牌客户端、邮件发送器、通知服务
- 与用户无关的服务：认证、分类，以及评论通知用的实体查询服务
for_user(jwt) 为单个请求派生绑定用户令牌的仓库与服务，请求结束时关闭。
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from src.infra.email.smtp import SmtpEmailSender
from src.infra.strapi.client import StrapiClient
from src.repositories.category import CategoryRepository
from src.repositories.comment import CommentRepository
from src.repositories.event import EventRepository
from src.repositories.match_result import MatchResultRepository
from src.repositories.tournament import TournamentRepository
from src.repositories.tournament_match import TournamentMatchRepository
from src.services.auth_service import AuthService
from src.services.category_service import CategoryService
from src.services.comment_service import CommentService
from src.services.event_service import EventService
from src.services.match_result_service import MatchResultService
from src.services.notification_service import EmailSender, NotificationService
from src.services.tournament_match_service import TournamentMatchService
from src.services.tournament_service import TournamentService
from src.shared.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class UserServices:
    """绑定单个用户令牌的服务集合（请求作用域）"""

    client: StrapiClient
    match_results: MatchResultService
    events: EventService
    tournaments: TournamentService
    tournament_matches: TournamentMatchService
    comments: CommentService

    async def aclose(self) -> None:
        await self.client.aclose()


class ServiceContainer:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[StrapiClient] = None,
        email_sender: Optional[EmailSender] = None,
        notifications: Optional[NotificationService] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or StrapiClient(
            self.settings.strapi.url,
            self.settings.strapi.api_token,
            self.settings.strapi.timeout_seconds,
            transport=transport,
            uploads_url=self.settings.uploads.public_url,
        )
        self.email_sender = email_sender or SmtpEmailSender(self.settings.email)
        self.notifications = notifications or NotificationService(self.email_sender)

        self.auth = AuthService(self.client, self.notifications, self.settings.registration_secret)
        self.categories = CategoryService(CategoryRepository(self.client))

        # 评论通知在后台任务中查询实体，不能依赖请求结束即关闭的用户客户端
        match_service = TournamentMatchService(TournamentMatchRepository(self.client))
        self.lookup_services = {
            "matchResult": MatchResultService(MatchResultRepository(self.client)),
            "tournament": TournamentService(TournamentRepository(self.client), match_service),
            "event": EventService(EventRepository(self.client)),
        }

    def for_user(self, jwt: str) -> UserServices:
        """派生绑定用户令牌的服务；调用方负责 aclose()"""
        client = self.client.with_user_auth(jwt)
        matches = TournamentMatchService(TournamentMatchRepository(client))
        return UserServices(
            client=client,
            match_results=MatchResultService(MatchResultRepository(client), self.notifications),
            events=EventService(EventRepository(client), self.notifications),
            tournaments=TournamentService(TournamentRepository(client), matches, self.notifications),
            tournament_matches=matches,
            comments=CommentService(
                CommentRepository(client), self.notifications, self.lookup_services
            ),
        )

    async def aclose(self) -> None:
        """等待未完成的通知后关闭客户端"""
        logger.info(f"Draining {self.notifications.pending} pending notifications")
        await self.notifications.drain()
        await self.client.aclose()
