"""Cross-cutting infrastructure: logging, metrics, middleware and persistence"""
