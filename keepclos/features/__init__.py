"""Feature slices: relationships (scoring) and reminders (rules + scheduler)."""
