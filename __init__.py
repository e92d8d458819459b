"""
Family Schedule Assistant - A shared family calendar with a Telegram bot

This package provides:
- Day, week and month calendar grids with overlap layout and conflict marking
- Natural-language (Hebrew) event entry through OpenAI, by text or voice
- Telegram notifications, daily digests and reminders
- A Supabase-backed store for events and announcements
"""

__version__ = "1.0.0"
__author__ = "Family Schedule Team"
