# Domain Layer
# ============
# Pure logic with no framework or database dependencies:
# - link_resolver: /go outbound link decisions (redirect vs. interstitial)
# - tiktok: TikTok host detection and URL cleanup
# - review_input: review payload parsing and coercion
