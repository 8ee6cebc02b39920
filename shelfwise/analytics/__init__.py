"""
Event analytics.

Responsibilities:
- Keep an in-memory log of recommendation and question events.
- Count the most frequent values of an event property over a window.
- Bucket those counts by day, week or month into dense time series.
- Summarise recommendation outcomes for the admin dashboard.
"""
