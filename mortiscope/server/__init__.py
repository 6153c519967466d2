"""MortiScope FastAPI server package."""
