"""LifeLink HTTP API (FastAPI)."""
