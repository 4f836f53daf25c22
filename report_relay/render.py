"""Status texts for published reports."""
from datetime import datetime
from typing import NamedTuple, Optional

from dateutil import tz

from report_relay.models import Entity

LOCAL_TZ = tz.gettz("Europe/Berlin") or tz.UTC

STATUS_LABELS = {
    "open": "offen",
    "closed": "erledigt",
    "hold": "zurückgestellt",
}


class TextLimits(NamedTuple):
    """Character budgets of one channel."""

    subject_with_image: int
    subject: int
    response_max: int  # responses longer than this are cut ...
    response_cut: int  # ... to this many characters plus "[...]"


def format_date(value: datetime) -> str:
    return value.astimezone(LOCAL_TZ).strftime("%d.%m.%Y")


def new_message_text(entity: Entity, detail_url: str, limits: TextLimits,
                     with_image: bool = False, image_credit: str = "") -> str:
    subject = entity.subject[:limits.subject_with_image if with_image else limits.subject]
    text = f"{format_date(entity.created_date)}:\n\n{subject}\n{detail_url}"
    if with_image and image_credit:
        text += f"\nBild: {image_credit}"
    return text


def response_update_text(entity: Entity, limits: TextLimits) -> Optional[str]:
    response = entity.latest_response
    if response is None:
        return None
    message = response.message
    if len(message) > limits.response_max:
        message = f"{message[:limits.response_cut]}[...]"
    return f'{format_date(response.message_date)}:\n\n"{message}"'


def status_update_text(entity: Entity) -> str:
    label = STATUS_LABELS.get(entity.status, entity.status or "unbekannt")
    return f"{format_date(entity.last_updated)}:\n\nStatus: {label}"
