from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.data.models.notification import NotificationModel


class NotificationRepo:
    def __init__(self, db: Session):
        self.db = db

    def add(self, notification: NotificationModel) -> NotificationModel:
        # bez commita - powiadomienie idzie w tej samej transakcji co zmiana zamówienia
        self.db.add(notification)
        return notification

    def get(self, notification_id: int) -> NotificationModel | None:
        return self.db.get(NotificationModel, notification_id)

    def list_by_user(self, user_id: int, unread_only: bool = False) -> list[NotificationModel]:
        stmt = select(NotificationModel).where(NotificationModel.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationModel.is_read.is_(False))
        stmt = stmt.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
        return list(self.db.execute(stmt).scalars())

    def count_unread(self, user_id: int) -> int:
        return self.db.execute(
            select(func.count(NotificationModel.id)).where(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
        ).scalar_one()

    def mark_all_read(self, user_id: int) -> int:
        result = self.db.execute(
            update(NotificationModel)
            .where(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def commit(self):
        self.db.commit()
