"""
Utility helpers for bujo.

Modules:
    dates: Calendar month arithmetic
    rapid_log: Bullet prefix parsing and one-line rendering
"""
