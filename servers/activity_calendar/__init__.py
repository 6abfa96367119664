"""
VRChat Activity Calendar

Collects community event listings for two locales, normalizes them and
classifies them relative to the current time:
- Fetching from structured APIs with a scraped-calendar fallback
- Parsing free-text time ranges into time windows
- Tagging ongoing / previous / next / upcoming / listing activities
- Keeping the last good listing when a fetch comes back empty
"""

__version__ = "1.0.0"
