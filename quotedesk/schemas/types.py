"""
Shared Pydantic types for schema validation.

UUIDStr: accepts str and uuid.UUID, coercing UUID to str for JSON output.
TimeStr: "HH:MM" string, accepts datetime.time from the ORM.
"""

from datetime import time
from typing import Annotated
from pydantic import BeforeValidator

UUIDStr = Annotated[str, BeforeValidator(lambda v: str(v) if not isinstance(v, str) else v)]

TimeStr = Annotated[str, BeforeValidator(lambda v: v.strftime("%H:%M") if isinstance(v, time) else v)]
