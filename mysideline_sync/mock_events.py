"""
Synthetic MySideline events for development and offline testing.

Enabled with ``MYSIDELINE_USE_MOCK=true``; development mode also falls back to
these when the browser run fails.
"""
import datetime as dt
from typing import List, Optional

from .models import ExtractedEvent
from .states import STATE_NAMES

MOCK_STATES = ["NSW", "QLD", "VIC"]

# (title template, city per state, months ahead)
_TEMPLATES = [
    ("{state} Masters Rugby League Carnival",
     {"NSW": "Sydney", "QLD": "Brisbane", "VIC": "Melbourne"}, 2),
    ("{state} Over 35s Championship",
     {"NSW": "Newcastle", "QLD": "Gold Coast", "VIC": "Geelong"}, 4),
]

REGISTRATION_LEAD_DAYS = 14


def _add_months(day: dt.date, months: int) -> dt.date:
    month_index = day.month - 1 + months
    return dt.date(day.year + month_index // 12, month_index % 12 + 1, 15)


def generate_mock_events(now: Optional[dt.datetime] = None) -> List[ExtractedEvent]:
    """Two events per state for NSW, QLD and VIC, always on the 15th of the month."""
    now = now or dt.datetime.now()
    events: List[ExtractedEvent] = []

    for state_index, state in enumerate(MOCK_STATES):
        for index, (template, cities, month_offset) in enumerate(_TEMPLATES):
            title = template.format(state=state)
            city = cities[state]
            event_date = _add_months(now.date(), month_offset)
            address = f"{city} Sports Complex, {state}"
            schedule = (
                f"Day-long tournament starting at {8 + index}:00 AM. "
                "Multiple age divisions available."
            )
            events.append(ExtractedEvent(
                title=title,
                mysideline_title=title,
                date=event_date,
                state=STATE_NAMES[state],
                address_lines=[address],
                location_address=address,
                venue_name=f"{city} Sports Complex",
                location_country="Australia",
                description=f"${300 + index * 50} per team (Early bird discount available)",
                organiser_contact_name=f"{state} Rugby League Masters",
                organiser_contact_email=f"masters@{state.lower()}rl.com.au",
                organiser_contact_phone=f"0{index + 2} 9{state_index}00 {1000 + index * 111}",
                registration_link=(
                    f"https://profile.mysideline.com.au/register/mock-{state.lower()}-{index + 1}"
                ),
                registration_deadline=event_date - dt.timedelta(days=REGISTRATION_LEAD_DAYS),
                schedule_details=schedule,
                event_type="League",
                scraped_at=now,
                full_content=f"{title}. {address}. {schedule}",
                has_registration_button=True,
            ))
    return events
