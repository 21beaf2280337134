"""Web API — FastAPI app exposing the patch library."""
