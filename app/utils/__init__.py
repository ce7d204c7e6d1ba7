from urllib.parse import urlsplit, urlunsplit


def redact_url(url: str) -> str:
    """Drop credentials and mask the query string so target URLs are safe to log."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<unparseable url>"
    netloc = parts.netloc.rpartition("@")[2]
    query = "****" if parts.query else ""
    return urlunsplit((parts.scheme, netloc, parts.path, query, ""))
