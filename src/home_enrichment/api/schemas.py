from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PropertyLookupRequest(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None


class ClimateLookupRequest(BaseModel):
    zipCode: Optional[str] = None
    state: Optional[str] = None


class PropertyLookupResponse(BaseModel):
    found: bool
    data: Optional[Dict[str, Any]] = None
    home: Dict[str, Any] = Field(default_factory=dict)
    sources: List[str] = Field(default_factory=list)


class ClimateLookupResponse(BaseModel):
    found: bool
    data: Optional[Dict[str, Any]] = None
    recommendations: List[str] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)
