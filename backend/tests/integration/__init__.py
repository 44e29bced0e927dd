"""Integration tests - HTTP API through the FastAPI test client"""
