from enum import Enum


class ApplicationStatus(str, Enum):
    """Статусы заявки, которые выставляют процедуры БД."""

    PENDING = "pending"
    CONFIRMED = "confirmed"

    @classmethod
    def all(cls):
        """Вернуть список кодов статусов без префикса класса."""
        return [status.value for status in cls]


_STATUS_LABELS = {
    "pending": "Gaida apstiprinājumu",
    "confirmed": "Apstiprināts",
}


def get_status_label(value: str) -> str:
    """Вернуть подпись статуса для таблиц клиента (латышский, как в UI)."""
    return _STATUS_LABELS.get(value, value)


def can_confirm(value: str) -> bool:
    """Подтвердить можно только ещё не подтверждённую заявку."""
    return value != ApplicationStatus.CONFIRMED.value
