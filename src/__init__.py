"""
Finance Chat Assistants - Source Package

Session and history management for the income and expenditure
chat assistants of a personal-finance application.

DESIGN PRINCIPLES:
1. Authenticate first, then validate the assistant, then touch storage
2. The principal's user id is a mandatory filter on every store call
3. Fail early, fail with a generic message; details go to the audit log
4. Every history read, write and clear is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Chat Assistants Team"
