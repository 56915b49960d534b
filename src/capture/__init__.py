# src/capture/__init__.py — v1
