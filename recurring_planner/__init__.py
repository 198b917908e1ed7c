"""Recurring Planner: recurring templates, occurrences and todos on a calendar."""
