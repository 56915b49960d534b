# src/collaborators/__init__.py — v1
