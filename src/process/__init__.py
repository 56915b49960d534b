# src/process/__init__.py — v1
