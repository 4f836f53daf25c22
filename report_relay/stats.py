"""Weekly chart of newly created reports."""
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from report_relay.config import TenantConfig
from report_relay.logging_conf import logger
from report_relay.models import Entity
from report_relay.queue.channel_queue import ChannelQueue
from report_relay.queue.models import Purpose, QueueItem

WEEKS_BACK = 10
MAX_LINES = 8
BAR_WIDTH = 15
FULL_BLOCK = "▓"
FULLWIDTH_DIGITS = str.maketrans("0123456789", "０１２３４５６７８９")


def week_label(week: int) -> str:
    text = f"{week}" if week >= 10 else f"    {week}"
    return text.translate(FULLWIDTH_DIGITS)


def chart_lines(entities: Iterable[Entity], today: date) -> List[str]:
    start_of_week = today - timedelta(days=today.weekday())
    lower_bound = datetime.combine(start_of_week - timedelta(weeks=WEEKS_BACK), datetime.min.time(), tzinfo=timezone.utc)

    counts = Counter(
        entity.created_date.isocalendar()[:2]
        for entity in entities
        if entity.created_date > lower_bound
    )

    lines = []
    for (year, week), count in sorted(counts.items(), reverse=True)[:MAX_LINES]:
        bar = FULL_BLOCK * min(BAR_WIDTH, int(count / 10 + 0.5))
        lines.append(f"KW {week_label(week)} {bar}  {count}")
    return lines


def render_week_stats(entities: Iterable[Entity], today: date, title: str, hashtag: str = "") -> str:
    text = f"{title}\n\n" + "\n".join(chart_lines(entities, today))
    if hashtag:
        text += f"\n\n{hashtag}"
    return text


def enqueue_week_stats(tenant: TenantConfig, queue: ChannelQueue, entities: Iterable[Entity],
                       today: Optional[date] = None) -> str:
    """Render the weekly chart and queue it on every channel of the tenant."""
    today = today or datetime.now(timezone.utc).date()
    text = render_week_stats(entities, today, tenant.stats_title, tenant.stats_hashtag)
    for channel in tenant.channels:
        queue.enqueue(channel, Purpose.PERIODIC_REPORT, QueueItem.for_report(channel, text, today.isoformat()))
    logger.info(f"Weekly statistics for {today.isoformat()} queued")
    return text
