"""Vercel serverless function - Gemini proxy entry point."""
from gemini_proxy.main import app

# Vercel requires the app to be exported
handler = app
