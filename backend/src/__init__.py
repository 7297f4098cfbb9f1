"""
Core package for the backend service.

This package contains the main application logic and components including:
- Database models, sessions and thread queries
- Data classes for chat messages, sources and files
- Services for chat turns, extensions, conversations and file uploads
- API routes and endpoints
"""
