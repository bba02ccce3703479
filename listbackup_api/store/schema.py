"""Primary key attributes of each table, keyed by logical table name."""

from listbackup_api.config.settings import Settings

TABLE_KEYS: dict[str, tuple[str, ...]] = {
    "accounts": ("accountId",),
    "user-accounts": ("userId", "accountId"),
    "teams": ("teamId",),
    "team-members": ("teamId", "userId"),
    "platforms": ("platformId",),
    "platform-sources": ("platformSourceId",),
    "platform-connections": ("connectionId",),
    "files": ("fileId",),
    "activity": ("eventId",),
    "billing-plans": ("planId",),
    "billing-customers": ("customerId",),
    "subscriptions": ("subscriptionId",),
    "usage": ("eventId",),
    "domains": ("domainId",),
    "branding": ("brandingId",),
}

# Range key of each secondary index that has one
INDEX_SORT_KEYS: dict[tuple[str, str], str] = {
    ("team-members", "UserTeamsIndex"): "teamId",
    ("platform-sources", "PlatformCategoryIndex"): "category",
    ("platform-sources", "PlatformStatusIndex"): "status",
    ("platform-connections", "AccountPlatformIndex"): "platformId",
    ("activity", "AccountTimeIndex"): "timestamp",
}


def resolved_key_schema(settings: Settings) -> dict[str, tuple[str, ...]]:
    """Map configured physical table names to their key attributes."""
    return {settings.table(name): keys for name, keys in TABLE_KEYS.items()}


def resolved_index_sort_keys(settings: Settings) -> dict[tuple[str, str], str]:
    return {(settings.table(name), index): attr for (name, index), attr in INDEX_SORT_KEYS.items()}
