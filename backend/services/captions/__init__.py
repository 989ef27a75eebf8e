"""Caption acquisition and subtitle rendering service.

This service handles:
- Fetching caption tracks and transcript pages from the content provider
- Rendering tracks as SRT, WebVTT or plain text
- Merging two single-language renderings into one bilingual file
- Caching every rendered file on disk under a deterministic path
"""

__version__ = "1.0.0"
