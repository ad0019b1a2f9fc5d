"""FastAPI application for Scrapbook."""
