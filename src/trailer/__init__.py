# src/trailer/__init__.py — v1
