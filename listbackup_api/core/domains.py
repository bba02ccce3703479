"""Custom domain name helpers."""

from urllib.parse import urlsplit

# Platform-owned hostnames that never resolve to customer branding
PROTECTED_DOMAINS = frozenset({
    "listbackup.ai",
    "listbackup.com",
    "listbackup.io",
    "listbackup-domains.com",
    "api.listbackup.ai",
    "app.listbackup.ai",
    "dashboard.listbackup.ai",
    "portal.listbackup.ai",
    "admin.listbackup.ai",
    "auth.listbackup.ai",
    "cdn.listbackup.ai",
    "static.listbackup.ai",
    "assets.listbackup.ai",
    "mx1.listbackup.ai",
    "mx2.listbackup.ai",
    "ns1.listbackup.ai",
    "ns2.listbackup.ai",
    "ns3.listbackup.ai",
    "ns4.listbackup.ai",
})

PROTECTED_SUFFIXES = (
    ".listbackup.ai",
    ".listbackup.com",
    ".listbackup.io",
    ".amazonaws.com",
    ".cloudfront.net",
    ".google.com",
    ".microsoft.com",
    ".apple.com",
)


def sanitize_domain(value: str) -> str:
    """Reduce a URL or host header to a bare lowercase hostname."""
    domain = value.strip()
    for scheme in ("http://", "https://"):
        if domain.startswith(scheme):
            domain = domain[len(scheme):]
    domain = domain.split("/", 1)[0]
    domain = domain.split(":", 1)[0]
    return domain.lower().strip()


def extract_host(url: str) -> str:
    """Hostname of a full URL such as a Referer header, or "" if it has none."""
    return urlsplit(url).hostname or ""


def is_protected_domain(domain: str) -> bool:
    domain = domain.strip().lower()
    if domain in PROTECTED_DOMAINS:
        return True
    if domain.endswith(PROTECTED_SUFFIXES):
        return True
    return any(domain.endswith("." + protected) for protected in PROTECTED_DOMAINS)
