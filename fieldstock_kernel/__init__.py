"""
Field Stock Kernel

Multi-location inventory lot tracking for a field-service fleet:
- Warehouse and mobile-unit stock per item
- Lots keyed by (unit, receiving invoice)
- Append-only transfer history
- Typed errors and structured logging
"""

__version__ = "0.1.0"
