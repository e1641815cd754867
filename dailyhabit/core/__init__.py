"""
DailyHabit Tracker - Core
Data models, in-memory stores and the analytics engine.
"""
