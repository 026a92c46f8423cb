# Review Hub - Product Review Catalog
# ===================================
# A curated catalog of product review videos (TikTok / YouTube / Reels)
# using Layered Architecture:
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI web app (public grid, admin dashboard, /go links)
# - Application:    Use cases and orchestration (no business rules)
# - Domain:         Pure business logic (no external dependencies)
# - Infrastructure: External services (MongoDB, TikTok oEmbed, settings)
#
# This design allows easy replacement of infrastructure components
# (e.g., swap MongoDB for another document store).
