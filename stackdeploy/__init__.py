"""Compose stack deployment with bounded readiness polling."""
