# Infrastructure Layer
# ====================
# Contains all external service integrations:
# - persistence/: MongoDB review store
# - tiktok/: TikTok oEmbed metadata lookups
# - config/: Environment and settings management
#
# This layer can be replaced entirely without affecting domain/application layers.
