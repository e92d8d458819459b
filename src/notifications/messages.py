"""
Telegram message builders (HTML parse mode)
"""
from collections import OrderedDict
from datetime import date, datetime
from typing import Dict, Sequence

from config.settings import Config, FamilyConfig
from src.calendar.models import FamilyEvent

DAYS_HE = ["ראשון", "שני", "שלישי", "רביעי", "חמישי", "שישי", "שבת"]


def escape_html(text: str) -> str:
    return (text or "").replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def day_name(value) -> str:
    return DAYS_HE[(value.weekday() + 1) % 7]


def format_time(value: datetime) -> str:
    return value.strftime("%H:%M")


def format_short_date(value) -> str:
    return f"{value.day}/{value.month}"


def category_emoji(category: str) -> str:
    return Config.CATEGORY_EMOJI.get(category, "📌")


def reminder_text(minutes: int) -> str:
    if minutes >= 1440:
        return "יום לפני"
    if minutes >= 120:
        hours = minutes / 60
        return f"{int(hours) if hours.is_integer() else hours} שעות לפני"
    if minutes >= 60:
        return "שעה לפני"
    return f"{minutes} דקות לפני"


def build_new_event_message(event: FamilyEvent, family: FamilyConfig) -> str:
    start = event.start_time
    message = (
        f"📅 <b>אירוע חדש ביומן!</b>\n\n"
        f"{category_emoji(event.category)} <b>{escape_html(event.title)}</b>\n"
        f"{family.emoji_for(event.person)} {escape_html(event.person)}\n"
        f"🗓 יום {day_name(start)}, {format_short_date(start)}\n"
        f"🕐 {format_time(start)} - {format_time(event.end_time)}"
    )
    if event.reminder_minutes:
        message += f"\n⏰ תזכורת: {reminder_text(event.reminder_minutes)}"
    if event.notes:
        message += f"\n📝 {escape_html(event.notes)}"
    return message


def build_daily_schedule_message(events: Sequence[FamilyEvent], day: date,
                                 family: FamilyConfig) -> str:
    header = f"📋 <b>לוז יומי - יום {day_name(day)} {day.day}/{day.month}/{day.year}</b>"
    if not events:
        return f"{header}\n\n✨ אין אירועים מתוכננים להיום! יום חופשי 🎉"

    lines = []
    for e in sorted(events, key=lambda ev: ev.start_time):
        reminder_icon = " ⏰" if e.reminder_minutes else ""
        lines.append(
            f"{format_time(e.start_time)}-{format_time(e.end_time)} {category_emoji(e.category)} "
            f"<b>{escape_html(e.title)}</b> {family.emoji_for(e.person)} {escape_html(e.person)}{reminder_icon}"
        )

    counts: Dict[str, int] = OrderedDict()
    for e in events:
        counts[e.person] = counts.get(e.person, 0) + 1
    summary = " | ".join(f"{family.emoji_for(p)} {escape_html(p)}: {n}" for p, n in counts.items())

    return f"{header}\n\n" + "\n".join(lines) + f"\n\n📊 סה\"כ {len(events)} אירועים\n{summary}"


def build_week_message(events: Sequence[FamilyEvent], sunday: date, saturday: date) -> str:
    if not events:
        return "📋 <b>לוז שבועי</b>\n\n✨ אין אירועים השבוע!"

    by_day: Dict[int, list] = {}
    for e in sorted(events, key=lambda ev: ev.start_time):
        by_day.setdefault((e.start_time.weekday() + 1) % 7, []).append(e)

    message = f"📋 <b>לוז שבועי</b>\n{format_short_date(sunday)} - {format_short_date(saturday)}\n"
    for index in range(7):
        day_events = by_day.get(index)
        if not day_events:
            continue
        message += f"\n<b>📅 יום {DAYS_HE[index]}:</b>\n"
        for e in day_events:
            message += f"  {format_time(e.start_time)} - {escape_html(e.title)} ({escape_html(e.person)})\n"
    message += f"\n📊 סה\"כ {len(events)} אירועים השבוע"
    return message


def build_reminder_message(event: FamilyEvent) -> str:
    start = event.start_time
    return (
        f"⏰ <b>תזכורת!</b>\n\n"
        f"{category_emoji(event.category)} <b>{escape_html(event.title)}</b>\n"
        f"👤 {escape_html(event.person)}\n"
        f"🗓 יום {day_name(start)}, {format_short_date(start)}\n"
        f"🕐 <b>{format_time(start)}</b>\n\n"
        f"📌 {reminder_text(event.reminder_minutes)}"
    )


def build_added_event_message(parsed: Dict) -> str:
    """Confirmation sent back to the chat that asked for the event"""
    event_day = date.fromisoformat(parsed["date"])
    message = (
        f"✅ <b>אירוע נוסף ליומן!</b>\n\n"
        f"📌 <b>{escape_html(parsed['title'])}</b>\n"
        f"👤 {escape_html(parsed['person'])}\n"
        f"🗓 יום {day_name(event_day)}, {parsed['date']}"
    )
    if parsed.get("end_date") and parsed["end_date"] != parsed["date"]:
        message += f" עד {parsed['end_date']}"
    message += f"\n🕐 {parsed['start_time']} - {parsed['end_time']}"
    if parsed.get("reminder_minutes"):
        message += f"\n⏰ תזכורת: {reminder_text(parsed['reminder_minutes'])}"
    if parsed.get("notes"):
        message += f"\n📝 {escape_html(parsed['notes'])}"
    return message


def build_site_message(app_url: str) -> str:
    return (
        f"🌐 <b>היומן המשפחתי באתר</b>\n\n📅 כניסה ליומן:\n{app_url}/family-schedule\n\n"
        f"💡 באתר תוכלו לראות את כל האירועים, להוסיף ולערוך בקלות"
    )


HELP_MESSAGE = (
    "🤖 <b>בוט היומן המשפחתי</b>\n\n"
    "📝 <b>להוספת אירוע:</b> פשוט כתבו בשפה חופשית או שלחו הודעה קולית\n"
    "לדוגמה: \"אימון יום שני 18:00\"\n\n"
    "📋 <b>פקודות:</b>\n"
    "/today - לוז היום\n"
    "/tomorrow - לוז מחר\n"
    "/week - לוז שבועי\n"
    "/site - לינק ליומן באתר\n"
    "/help - עזרה"
)
