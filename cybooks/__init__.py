"""CY-Books - Library Inventory and Loan Package

This package contains the core application modules including:
- Loan and copy bookkeeping (ledger.py)
- Library management logic (library.py)
- CLI interface (main.py)
- Data models (models.py)
- Database layer (database.py)
"""

__version__ = "1.0.0"
