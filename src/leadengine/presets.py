"""
LeadEngine presets - the choices offered by the search form.
"""

ROLES = ["UGC Creator", "Content Creator", "Influencer", "Talent/VIP"]

INDUSTRIES = [
    "Generale",
    "Beauty",
    "Sport",
    "Gym/Fitness",
    "Fashion",
    "Food",
    "Travel",
    "Tech",
    "Business",
]

PLATFORMS = ["instagram.com", "tiktok.com"]

# (value, label) pairs for the follower floor
FOLLOWER_OPTIONS = [
    ("300", "Any (min 300)"),
    ("1k", "Micro (1k+)"),
    ("5k", "Growing (5k+)"),
    ("10k", "Solid (10k+)"),
    ("50k", "Macro (50k+)"),
]

DEFAULT_CITY = "Napoli"
