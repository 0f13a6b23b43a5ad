"""Service deployment: FastAPI app and provider circuit breakers."""
