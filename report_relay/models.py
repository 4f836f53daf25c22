"""Report entity as delivered by the source."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpeg",
    "image/png": ".png",
}


def to_datetime(value) -> datetime:
    """Parse a source instant (epoch milliseconds or ISO 8601) to an aware datetime."""
    if value is None or value == "":
        return EPOCH
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    text = str(value)
    if text.lstrip("-").isdigit():
        return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


@dataclass
class Response:
    message: str
    message_date: datetime


@dataclass
class Image:
    id: str
    mime_type: str

    @property
    def extension(self) -> str:
        return IMAGE_EXTENSIONS.get(self.mime_type, "")


@dataclass
class Position:
    latitude: float
    longitude: float
    coordinate_system: str


@dataclass
class Entity:
    """One civic report.

    `raw` holds the source payload exactly as received; it is what gets
    persisted, so fields this class does not model survive a round trip.
    """

    id: Any
    created_date: datetime
    last_updated: datetime
    subject: str = ""
    responses: List[Response] = field(default_factory=list)
    image: Optional[Image] = None
    status: Optional[str] = None
    position: Optional[Position] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        responses = [
            Response(message=r.get("message", ""), message_date=to_datetime(r.get("messageDate")))
            for r in data.get("responses") or []
        ]

        image = None
        image_data = data.get("messageImage")
        if image_data and image_data.get("id") is not None:
            image = Image(id=str(image_data["id"]), mime_type=image_data.get("mimeType", ""))

        position = None
        geo = (data.get("messagePosition") or {}).get("geoCoding") or {}
        if geo.get("coordinateSystem") and geo.get("latitude") is not None and geo.get("longitude") is not None:
            position = Position(
                latitude=float(geo["latitude"]),
                longitude=float(geo["longitude"]),
                coordinate_system=geo["coordinateSystem"],
            )

        return cls(
            id=data["id"],
            created_date=to_datetime(data.get("createdDate")),
            last_updated=to_datetime(data.get("lastUpdated")),
            subject=data.get("subject") or "",
            responses=responses,
            image=image,
            status=data.get("status"),
            position=position,
            raw=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.raw)

    @property
    def latest_response(self) -> Optional[Response]:
        if not self.responses:
            return None
        return max(self.responses, key=lambda r: r.message_date)

    @property
    def image_filename(self) -> Optional[str]:
        """Local file name of the report image: `<id>-<media id><ext>`."""
        if not self.image:
            return None
        return f"{self.id}-{self.image.id}{self.image.extension}"
