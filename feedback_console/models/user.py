from typing import Optional

from .base import Record


class User(Record):
    username: str = ''
    role: str
    branch: Optional[str] = None
