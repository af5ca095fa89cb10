"""Core business logic module.

Modules:
- hierarchy: Level enumeration and the city > ... > content transition table
- navigation: Browse path parsing, listing endpoints and item links
- browse: Browse view assembly (path resolution + listing)
- policy: Central authorization decisions
- auth: Password hashing, registration and login sessions
- pages: PDF page renderers
- uploads: Upload validation, storage and cleanup
"""

__all__ = [
    "hierarchy",
    "navigation",
    "browse",
    "policy",
    "auth",
    "pages",
    "uploads",
]
