# Domain Ability Package
from .config import DEFAULT_ABILITY_CONFIG, AbilityConfig
from .models import BLOOM_LEVELS, AbilityProfile, BloomLevel, ResponseRecord, Zone

__all__ = [
    "AbilityConfig",
    "DEFAULT_ABILITY_CONFIG",
    "AbilityProfile",
    "BloomLevel",
    "BLOOM_LEVELS",
    "ResponseRecord",
    "Zone",
]
