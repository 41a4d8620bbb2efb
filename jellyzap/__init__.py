"""
jellyzap - Jellyfin notifications delivered to a WhatsApp group.
"""

__version__ = "0.1.0"
__logo__ = "🎬"
__title__ = "Jellyzap"
