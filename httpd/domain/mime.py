"""Content-type inference from file name suffixes."""

DEFAULT_MIME_TYPE = "text/plain"

# Checked in order; first matching suffix wins. Matching is case-sensitive.
MIME_BY_SUFFIX: tuple[tuple[tuple[str, ...], str], ...] = (
    ((".html", ".htm"), "text/html"),
    ((".txt", ".java"), "text/plain"),
    ((".gif",), "image/gif"),
    ((".class",), "application/octet-stream"),
    ((".jpg", ".jpeg"), "image/jpeg"),
)


def mime_type_for(name: str) -> str:
    """Return the content type for a file name, defaulting to text/plain."""
    for suffixes, mime_type in MIME_BY_SUFFIX:
        if name.endswith(suffixes):
            return mime_type
    return DEFAULT_MIME_TYPE
