"""ChronOS - your life in weeks.

Week-indexing, event-interval and cell-resolution model behind a
"life in weeks" calendar grid.
"""

__version__ = "0.4.0"
