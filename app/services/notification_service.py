# app/services/notification_service.py
from kombu.exceptions import OperationalError
from sqlalchemy.orm import Session

from app.celery_worker import celery_app
from app.data.models.notification import NotificationModel
from app.domain.enums import NotificationType
from app.domain.errors import Forbidden, NotFound
from app.repos.notification_repo import NotificationRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do powiadomień.
    Wiersze zapisywane w tej samej transakcji co zmiana zamówienia,
    doręczenie (email/push) idzie przez Celery dopiero po commicie.
    """

    def __init__(self, db: Session):
        self.repo = NotificationRepo(db)
        self._pending: list[NotificationModel] = []

    def notify(
        self,
        user_id: int,
        type: NotificationType,
        title: str,
        message: str,
        metadata: dict | None = None,
    ) -> NotificationModel:
        notification = self.repo.add(
            NotificationModel(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                is_read=False,
                extra=metadata,
            )
        )
        self._pending.append(notification)
        return notification

    def discard_pending(self):
        self._pending.clear()

    def dispatch_pending(self):
        """Wywoływane po commicie - kolejkuje doręczenie każdego nowego powiadomienia."""
        pending, self._pending = self._pending, []
        for n in pending:
            try:
                deliver_notification_task.delay(n.user_id, n.type.value, n.title)
            except OperationalError as e:
                # wiersz jest już w bazie, użytkownik zobaczy go w /notifications
                logger.error(f"Failed to queue notification {n.id} for user {n.user_id}: {e}")

    #query
    def list_notifications(self, user_id: int, unread_only: bool = False):
        return self.repo.list_by_user(user_id, unread_only)

    def unread_count(self, user_id: int) -> int:
        return self.repo.count_unread(user_id)

    #commands
    def mark_read(self, notification_id: int, user_id: int) -> NotificationModel:
        notification = self.repo.get(notification_id)
        if not notification:
            raise NotFound("Powiadomienie nie istnieje")
        if notification.user_id != user_id:
            raise Forbidden("Brak dostępu do powiadomienia")

        notification.is_read = True
        self.repo.commit()
        return notification

    def mark_all_read(self, user_id: int) -> int:
        updated = self.repo.mark_all_read(user_id)
        logger.info(f"Marked {updated} notifications as read for user {user_id}")
        return updated


@celery_app.task(name="app.services.notification_service.deliver_notification_task")
def deliver_notification_task(user_id: int, notification_type: str, title: str):
    """
    Celery task - w prawdziwym systemie wysłałby email/SMS/push.
    Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: {notification_type} - {title}")
    return {"user_id": user_id, "type": notification_type, "status": "sent"}
