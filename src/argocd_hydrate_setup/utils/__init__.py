# ABOUTME: Utilities package initialization for the Setup ArgoCD Hydrate action
# ABOUTME: Contains the pipeline stages and shared logging/error utilities

"""
Setup ArgoCD Hydrate Utilities Package

Pipeline stages:
    - platform.py: Target OS/architecture resolution
    - releases.py: GitHub releases lookup and version resolution
    - download.py: Archive download and extraction with retry logic
    - cache.py: Version-keyed tool cache
    - runner.py: GitHub Actions outputs, PATH and annotations

Shared:
    - errors.py: Exception hierarchy
    - logging.py: Structured logging with run IDs
"""
