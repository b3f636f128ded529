"""Development time authority (FastAPI)."""
