"""Pydantic models for parameters, engines and API payloads."""
