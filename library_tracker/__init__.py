"""Library Tracker - Core Application Package

This package contains the core application modules including:
- API endpoints and application factory (api.py)
- Book registry logic (library.py)
- JSON file persistence (store.py)
- CLI interface (main.py)
- Data models (book.py)
"""

__version__ = "1.0.0"
