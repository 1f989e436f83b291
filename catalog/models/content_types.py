
REGIONS = ("asian", "western", "banned", "unknown")
TIERS = ("free", "vip")


def content_type_key(region: str, tier: str) -> str:
    return region if tier == "free" else f"{tier}-{region}"


CONTENT_TYPES = tuple(content_type_key(region, tier) for tier in TIERS for region in REGIONS)
