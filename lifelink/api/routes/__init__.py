"""Route modules for the LifeLink API."""
