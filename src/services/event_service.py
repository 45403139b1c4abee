"""活动服务"""
from src.domain.models import Event
from src.domain.requests import EventCreate, EventUpdate, RequestModel
from src.services.base import ContentService, ServiceMessages, check_stored_date_range


class EventService(ContentService[Event]):
    name = "EventService"
    create_model = EventCreate
    update_model = EventUpdate
    messages = ServiceMessages(
        get_one="Chyba při načítání události",
        get_many="Chyba při načítání událostí",
        create="Chyba při vytváření události",
        update="Chyba při aktualizaci události",
        delete="Chyba při mazání události",
        not_found="Událost s ID {id} nebyla nalezena",
    )

    def notify_created(self, entity: Event) -> None:
        self.notifications.notify_event_created(entity)

    def notify_updated(self, entity: Event) -> None:
        self.notifications.notify_event_updated(entity)

    async def check_update(self, document_id: str, request: RequestModel) -> None:
        await check_stored_date_range(self.repository, document_id, request)
