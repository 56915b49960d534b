# src/narration/__init__.py — v1
