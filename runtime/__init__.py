"""
Runtime package for the chat relay server.

This package contains:
- API layer (FastAPI app, CORS gate, routes)
- Agents (session minting / conversation orchestration)
- Models (Pydantic request/response and run models)
"""
