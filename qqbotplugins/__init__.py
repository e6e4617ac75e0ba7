"""Chat bot feature logic: reminders and their clock, group management, MIDI, holiday countdowns and web lookups."""

__version__ = "0.1.0"