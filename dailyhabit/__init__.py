#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DailyHabit Tracker
Habit completions, mood and sleep logging with monthly analytics and
per-user document sync.

Version: 1.0.0
"""

__version__ = "1.0.0"
