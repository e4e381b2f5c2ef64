"""
Catalog package for the book catalog service.

This package contains:
- ISBN-13 generation, check-digit validation and classification
- Unique ISBN issuance against the book store
- Book data models
- MongoDB book repository
"""

__version__ = "1.0.0"
