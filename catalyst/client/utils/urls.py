"""URL helpers."""


def sanitize_url(url: str) -> str:
    """Strip whitespace and trailing slashes; default to https when no scheme is given."""
    result = url.strip()
    while result.endswith("/"):
        result = result[:-1]
    if not result.startswith(("http://", "https://")):
        result = f"https://{result}"
    return result
