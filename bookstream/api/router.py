# bookstream/api/router.py
# Master router -- registers all endpoint routers under /api
# Each endpoint module exposes its own `router`; prefixes and tags live here.

from fastapi import APIRouter

from bookstream.api.endpoints import auth, books, files, reading, upload

api_router = APIRouter()

# Auth
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])

# Catalog -- upload first so POST /books/upload is not shadowed by /books/{book_id}
api_router.include_router(upload.router, prefix="/books", tags=["Upload"])
api_router.include_router(books.router, prefix="/books", tags=["Books"])

# Reading progress
api_router.include_router(reading.router, prefix="/reading", tags=["Reading Progress"])

# Static files (local storage backend)
api_router.include_router(files.router, prefix="/files", tags=["Files"])
