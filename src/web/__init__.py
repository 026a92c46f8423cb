# Presentation Layer
# ==================
# FastAPI app (app.py), admin access checks (auth.py) and HTML pages (pages.py).
