"""Supported advertising platforms."""

from enum import Enum


class Platform(Enum):
    """Supported media platforms."""
    GOOGLE = "google"
    META = "meta"
    DV360 = "dv360"
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
