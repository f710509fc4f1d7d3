"""
Daily Roster — Built-in reference data.

Used whenever a reference list is missing from storage or fails validation.
The functions return fresh copies so callers can mutate them freely.
"""

from __future__ import annotations

from src.data.models import ChecklistItem, Chore, Participant, Staff, TimeSlot

STAFF_COLORS = [
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#96CEB4", "#FFEAA7",
    "#DDA0DD", "#98D8C8", "#F7DC6F", "#BB8FCE", "#85C1E9",
    "#F8C471", "#82E0AA", "#F1948A", "#85C1E9", "#D7BDE2",
    "#A3E4D7", "#F9E79F", "#D5A6BD", "#AED6F1", "#A9DFBF",
    "#F5B7B1", "#D2B4DE", "#A9CCE3", "#A3E4D7", "#F7DC6F",
    "#E8DAEF", "#D1F2EB",
]

_STAFF_NAMES = [
    "Anita", "Antoinette", "Antonia", "Benoit", "Charbel", "Chelsea",
    "Crystal", "George", "Isabella", "Jamie", "Jessica", "Juliet",
    "Liana", "Liya", "Maray", "Marianne", "Mary", "Michelle", "Mikaela",
    "Paneta", "Princess", "Tayla", "Tema", "Theresia",
]
_TEAM_LEADERS = {"Antoinette"}
_PLACEHOLDERS = ["Everyone", "Drive/Outing", "Audit"]

_PARTICIPANTS = [
    ("Ayaz", None), ("Billy", None), ("Billy - drop to Melina's", "Melina's"),
    ("Brian", None), ("Diana", None), ("Elias", None), ("Gemana", None),
    ("Jacob", None), ("Jimmy", None), ("Jessica", None), ("Julian", None),
    ("Maher", None), ("Naveed", None), ("Paul", None), ("Peter", None),
    ("Reema", None), ("Reema - Mancini's", "Mancini's"), ("Saim", None),
    ("Scott", None), ("Shatha", None), ("Sumera", None), ("Tiffany", None),
    ("Zara", None), ("Zoya", None), ("Tema", None),
    ("Tema - Drop to Ayaz", "Ayaz"),
]
_TWINS = {"Zara", "Zoya"}

_CHORES = [
    "Vacuuming",
    "Mopping",
    "Clean toilets, Refill Soap Dispenser, Restock Toilet Paper",
    "Tidy up and Pack Twins Room",
    "Wipe down TV, Clean front Windows inside and outside, "
    "Wipe down Piano and table in lounge area",
    "Wipe Down Lounges with Soapy Water",
    "Wipe down door handles and light switches",
    "Wipe Down Kitchen Cupboards",
    "Pack sun bed mattresses & covers in gym area",
    "Tidy front and back of property with blower",
    "Weeding of garden beds",
]

_CHECKLIST = [
    "Pack all outdoor cushions and covers in the shed & close roller door",
    "Lock the screen door & back door",
    "Place all devices, computers & walkie talkies on charge",
    "Turn off all lights and air conditioners",
    "Turn on the alarm",
    "Lock the front door and screen door",
]


def default_staff() -> list[Staff]:
    staff = [
        Staff(
            id=str(i),
            name=name,
            color=STAFF_COLORS[i - 1],
            is_team_leader=name in _TEAM_LEADERS,
            is_chore_exempt=name in _TEAM_LEADERS,
        )
        for i, name in enumerate(_STAFF_NAMES, start=1)
    ]
    offset = len(staff)
    for i, name in enumerate(_PLACEHOLDERS, start=offset + 1):
        staff.append(
            Staff(
                id=str(i), name=name, color=STAFF_COLORS[i - 1],
                is_assignable=False,
            )
        )
    return staff


def default_participants() -> list[Participant]:
    return [
        Participant(
            id=str(i),
            name=name,
            has_drop_off=location is not None,
            drop_off_location=location,
            is_twin=name in _TWINS,
        )
        for i, (name, location) in enumerate(_PARTICIPANTS, start=1)
    ]


def default_chores() -> list[Chore]:
    return [Chore(id=str(i), name=name) for i, name in enumerate(_CHORES, start=1)]


def default_checklist() -> list[ChecklistItem]:
    return [
        ChecklistItem(id=str(i), name=name)
        for i, name in enumerate(_CHECKLIST, start=1)
    ]


def _display(hhmm: str) -> str:
    hour, minute = map(int, hhmm.split(":"))
    suffix = "am" if hour < 12 else "pm"
    hour12 = hour if hour <= 12 else hour - 12
    return f"{hour12}:{minute:02d}{suffix}"


def _build_time_slots(start: str = "10:00", count: int = 9, length: int = 30) -> list[TimeSlot]:
    hour, minute = map(int, start.split(":"))
    t = hour * 60 + minute
    slots: list[TimeSlot] = []
    for i in range(1, count + 1):
        s = f"{t // 60:02d}:{t % 60:02d}"
        e = f"{(t + length) // 60:02d}:{(t + length) % 60:02d}"
        slots.append(
            TimeSlot(id=str(i), start_time=s, end_time=e, display_time=f"{_display(s)} - {_display(e)}")
        )
        t += length
    return slots


# Nine 30-minute slots, 10:00 to 14:30. Ids "1".."9" in temporal order.
TIME_SLOTS: tuple[TimeSlot, ...] = tuple(_build_time_slots())
