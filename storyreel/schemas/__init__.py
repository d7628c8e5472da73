"""Pydantic records shared by the renderer and the pipeline."""
