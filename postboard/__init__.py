"""postboard - a small users / posts / comments REST backend.

- Cookie-based JWT sessions (stateless; logout only clears the cookie)
- SQLite by default, Postgres when given a postgresql:// DSN
- Mutating a post or comment requires owning it

See README for setup and usage.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
