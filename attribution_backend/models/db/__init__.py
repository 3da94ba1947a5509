from .shops import Shop
from .event_metadata import EventMetadata
from .ad_spend import AdSpend
from .ad_hierarchy import AdAccount, AdCampaign, AdSet, Ad

__all__ = [
    "Shop",
    "EventMetadata",
    "AdSpend",
    "AdAccount",
    "AdCampaign",
    "AdSet",
    "Ad",
]
