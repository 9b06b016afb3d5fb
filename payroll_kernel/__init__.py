"""
Payroll Kernel

Shared infrastructure for the shift payroll engine:
- Structured JSON logging with context propagation
- Typed exception hierarchy with machine-readable codes
- Injectable clock (no direct ``datetime.now()`` in engines)
- SQLAlchemy declarative base and session management for persisted state
"""

__version__ = "0.1.0"
