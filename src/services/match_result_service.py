"""比赛结果服务"""
from src.domain.models import MatchResult
from src.domain.requests import MatchResultCreate, MatchResultUpdate
from src.services.base import ContentService, ServiceMessages


class MatchResultService(ContentService[MatchResult]):
    name = "MatchResultService"
    create_model = MatchResultCreate
    update_model = MatchResultUpdate
    messages = ServiceMessages(
        get_one="Chyba při načítání výsledku zápasu",
        get_many="Chyba při načítání výsledků zápasů",
        create="Chyba při vytváření výsledku zápasu",
        update="Chyba při aktualizaci výsledku zápasu",
        delete="Chyba při mazání výsledku zápasu",
        not_found="Výsledek zápasu s ID {id} nebyl nalezen",
    )

    def notify_created(self, entity: MatchResult) -> None:
        self.notifications.notify_match_result_created(entity)

    def notify_updated(self, entity: MatchResult) -> None:
        self.notifications.notify_match_result_updated(entity)
