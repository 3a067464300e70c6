from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class FormField(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    label: str = Field(..., min_length=1, max_length=255)
    type: Literal["text", "textarea", "email", "phone", "number", "select", "checkbox"] = "text"
    required: bool = False
    options: List[str] = []


class FormTemplateBase(BaseModel):
    title: str = Field("Offerte aanvragen", min_length=1, max_length=255)
    subtitle: Optional[str] = None
    submit_text: str = Field("Verstuur aanvraag", min_length=1, max_length=100)
    success_message: Optional[str] = None
    fields: List[FormField] = []
    is_published: bool = False


class FormTemplateCreate(FormTemplateBase):
    pass


class FormTemplateUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    subtitle: Optional[str] = None
    submit_text: Optional[str] = Field(None, min_length=1, max_length=100)
    success_message: Optional[str] = None
    fields: Optional[List[FormField]] = None
    is_published: Optional[bool] = None


class FormTemplateResponse(BaseModel):
    id: int
    title: str
    subtitle: Optional[str] = None
    submit_text: str
    success_message: Optional[str] = None
    fields: List[Dict[str, Any]] = []
    is_published: bool
    created_at: datetime

    class Config:
        from_attributes = True
