"""
FastAPI RESTful API for the book catalog.

This module provides a REST API for:
- Creating books with generated, unique ISBN-13 codes
- Reading, updating and deleting books
- Paginated listing and title/author search
- ISBN validation
"""
