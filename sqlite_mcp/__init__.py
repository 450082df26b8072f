"""sqlite_mcp package initialization.

Single source of truth for the package version and the server identity so
that code, tests, and scripts can import without duplicating literals.
"""

PACKAGE_VERSION = "0.1.0"  # Keep in sync with pyproject version.
SERVER_NAME = "sqlite-manager"
MEMO_URI = "memo://insights"

__all__ = ["PACKAGE_VERSION", "SERVER_NAME", "MEMO_URI"]
