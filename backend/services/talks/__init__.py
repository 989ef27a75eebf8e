"""Talk catalogue service.

This service handles:
- Looking up talk metadata on the content provider by slug
- Keeping a local copy of every talk seen, refreshed once per cache period
- Indexing English transcripts for offline search
- Serving subtitles for a talk by slug
"""

__version__ = "1.0.0"
