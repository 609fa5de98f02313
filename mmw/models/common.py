"""
MMW — Response Envelope
========================
Every service operation and API endpoint answers with ``BaseResponse``:
``code`` is ``"success"`` or ``"error"``, ``msg`` is human readable and
``data`` carries the payload (absent on errors).
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

SUCCESS = "success"
ERROR = "error"


class BaseResponse(BaseModel, Generic[T]):
    """Tagged success/error result."""

    code: str
    msg: str
    data: T | None = None

    @classmethod
    def success(cls, data: Any = None, msg: str = "Success") -> "BaseResponse":
        return cls(code=SUCCESS, msg=msg, data=data)

    @classmethod
    def error(cls, msg: str) -> "BaseResponse":
        return cls(code=ERROR, msg=msg)

    @property
    def is_success(self) -> bool:
        return self.code == SUCCESS
