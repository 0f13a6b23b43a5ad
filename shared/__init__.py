"""Configuration, errors and API schemas shared by ingestion and serving."""
