# Application Layer
# =================
# Use cases that combine domain logic with infrastructure:
# - catalog: public review search with TikTok oEmbed fallback
