"""
Gemini Proxy

Serverless pass-through for the Google Generative Language API with CORS
negotiation, optional client-token authentication and request sanitization.
"""

__version__ = "1.0.0"
