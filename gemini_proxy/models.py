"""
Data Models Module

Pydantic models and type aliases shared by the proxy routes:
- JSONValue: any decoded JSON document (request bodies are not validated)
- Error bodies produced by the proxy itself
- System endpoint responses
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


JSONValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Error body returned by the proxy (never by the upstream)."""
    error: str = Field(..., description="Short description of the problem")
    detail: Optional[str] = Field(None, description="Underlying failure reason, if any")

    def to_content(self) -> Dict[str, Any]:
        """Serialize for a JSONResponse, leaving out an empty detail."""
        return self.model_dump(exclude_none=True)


# ============================================================================
# System Models
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(default="ok", description="Service status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
