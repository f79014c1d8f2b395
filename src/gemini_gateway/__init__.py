"""
Gemini Gateway package.

Provides:
- Prompt validation shared by the HTTP layer
- A thin adapter around the Gemini text-generation API
- FastAPI gateway exposing /health and /generate, served by uvicorn
"""
