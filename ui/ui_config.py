"""Front‑end global settings."""
import os

# URL where the FastAPI service lives
API_URL = os.getenv("API_URL", "http://localhost:9000")

# Euclidean distance under which a face counts as a match
MATCH_THRESHOLD = float(os.getenv("MATCH_THRESHOLD", "0.8"))
