"""CY-Books - Services Package

This package contains service modules for the remote union catalog:
- SRU query construction
- Dublin Core metadata parsing
- HTTP client abstraction
- Catalog search client
"""
