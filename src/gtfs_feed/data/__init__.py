"""Configuration, row sources and feed loading."""
