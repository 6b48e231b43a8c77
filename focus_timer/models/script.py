from typing import Optional
from pydantic import BaseModel, Field

class Script(BaseModel):
    """User-authored script with timer lifecycle trigger flags"""
    id: Optional[int] = None
    name: str = Field(default="", description="Display name of the script")
    active: bool = True
    run_on_session_start: bool = False
    run_on_session_pause: bool = False
    run_on_session_end: bool = False
    run_on_break_start: bool = False
    run_on_break_pause: bool = False
    run_on_break_end: bool = False
    body: str = Field(description="Executable script content")
