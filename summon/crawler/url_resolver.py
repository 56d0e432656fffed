# summon/crawler/url_resolver.py
# Responsibility: Turn image references found in a page into absolute URLs.

import posixpath
import re
from urllib.parse import urlparse

DEFAULT_SCHEME = "http"
SCHEME_PREFIX = re.compile(r"^https?://", re.I)


def normalize_input_url(url: str) -> str:
    """
    Prefixes a scheme-less user supplied URL with http://.
    """
    url = url.strip()
    if not SCHEME_PREFIX.match(url):
        url = f"{DEFAULT_SCHEME}://{url}"
    return url


def resolve_url(base: str, ref: str) -> str:
    """
    Resolves `ref` against the document URL `base`.

    - explicit http:// or https:// references are returned unchanged
    - protocol-relative references (//host/...) get an http: prefix
    - absolute paths are joined to the base scheme and host
    - anything else is relative to the directory of the base path

    Never raises. A base without a host yields a malformed URL that the
    candidate fetch will reject.

    Args:
        base (str): Final (post-redirect) URL of the document.
        ref (str): Raw reference, e.g. an <img> src attribute.

    Returns:
        str: The absolute URL.
    """
    ref = ref.strip()
    lowered = ref.lower()
    if lowered.startswith("http://") or lowered.startswith("https://"):
        return ref
    if ref.startswith("//"):
        return f"{DEFAULT_SCHEME}:{ref}"

    parsed = urlparse(base)
    scheme = parsed.scheme or DEFAULT_SCHEME
    host = f"{scheme}://{parsed.netloc}"

    if ref.startswith("/"):
        return host + ref

    directory = posixpath.dirname(parsed.path or "/")
    return f"{host}{directory.rstrip('/')}/{ref}"
