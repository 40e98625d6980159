from .freewebnovel import FreeWebNovel

class LibRead(FreeWebNovel):
    """LibRead serves the freewebnovel catalogue through the same page layout."""
    BASE_URL = "https://libread.com"
    key = "libread"
    name = "LibRead"
    is_enabled_by_default = False
    url_patterns = [
        r"https?://(?:www\.)?libread\.com/libread/(?P<id>[\w-]+)",
    ]
