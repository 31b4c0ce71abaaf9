import re
from urllib.parse import urlparse, parse_qs

_WS = re.compile(r"\s+")
_YOUTUBE_HOSTS = ("youtube.com", "youtube-nocookie.com")


def is_http_url(url: str) -> bool:
    """True for a well-formed absolute http(s) URL with a host."""
    try:
        u = urlparse(url.strip())
    except ValueError:
        return False
    return u.scheme in {"http", "https"} and bool(u.netloc) and bool(u.hostname)


def domain_from_url(url: str) -> str:
    try:
        host = urlparse(url).hostname
    except ValueError:
        return "Unknown"
    return host or "Unknown"


def _is_youtube_host(host: str) -> bool:
    return any(host == h or host.endswith("." + h) for h in _YOUTUBE_HOSTS)


def extract_youtube_video_id(url: str) -> str | None:
    try:
        u = urlparse(url.strip())
    except ValueError:
        return None
    host = (u.hostname or "").lower()
    if host == "youtu.be":
        vid = u.path.strip("/").split("/")[0]
        return vid or None
    if _is_youtube_host(host):
        qs = parse_qs(u.query)
        if "v" in qs and qs["v"] and qs["v"][0]:
            return qs["v"][0]
        # embed, shorts, live, legacy /v/
        m = re.match(r"^/(?:embed|shorts|live|v)/([^/?#&]+)", u.path)
        if m:
            return m.group(1)
    return None


def collapse_whitespace(text: str) -> str:
    return _WS.sub(" ", text).strip()


def clean_pasted_text(text: str) -> str:
    # Normalize line endings, drop zero-width/nbsp noise, then collapse whitespace.
    t = text.replace("\r\n", "\n").replace("\r", "\n")
    t = t.replace("\u00a0", " ").replace("\u200b", "")
    return collapse_whitespace(t)
