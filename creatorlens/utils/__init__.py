"""
Utility modules for CreatorLens.

Available utilities:
- dates: Creator-local calendar helpers
- csv_export: Write scored videos to CSV
"""

__all__ = [
    "dates",
    "csv_export",
]
