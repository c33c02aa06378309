from pydantic import BaseModel
from typing import Literal


class Notice(BaseModel):
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"
