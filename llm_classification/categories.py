"""Suggested category vocabulary offered to the model as guidance.

The list is never enforced: any validated label is accepted.
"""

SUGGESTED_CATEGORIES = (
    "Internet Service Provider",
    "Telecommunications",
    "Hosting",
    "Technology",
    "Education",
    "Government",
    "Banking/Finance",
    "Healthcare",
    "Cloud",
    "Energy",
    "Consulting",
    "Marketing",
    "Communications",
    "Business",
    "Media/Entertainment",
    "Travel",
    "News",
    "Gaming",
    "Logistics",
    "Automotive",
    "Retail",
    "Industry",
    "Sports",
    "Agriculture",
    "Fashion",
    "Infrastructure",
    "Community",
    "Pharmaceuticals",
    "Charity",
    "Adult",
    "Streaming",
    "Other",
)


def category_hint() -> str:
    return "Prefer one of the following categories: " + ", ".join(SUGGESTED_CATEGORIES) + "."
