"""
Configuration of the Redis output.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OutputConfig(BaseModel):
    """
    Immutable options of one Redis output.

    ``key`` is mandatory: it names the list the downstream consumer pops from.
    ``bulk`` is the number of buffered lines that triggers a pipelined flush.
    ``timeout`` bounds a whole flush (connect, handshake, write and replies).
    ``debug`` enables a debug dump of every outgoing batch.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = Field("127.0.0.1", min_length=1, description="Redis server host name or address")
    port: int = Field(6379, ge=1, le=65535, description="Redis server TCP port")
    timeout: float = Field(10.0, gt=0, description="Deadline of one flush, in seconds")
    database: int = Field(0, ge=0, description="Database index passed to SELECT")
    password: Optional[str] = Field(None, description="Password passed to AUTH, if any")
    key: str = Field(..., min_length=1, description="List key the lines are pushed to")
    bulk: int = Field(1, ge=1, description="Number of lines sent per pipelined write")
    debug: bool = Field(False, description="Log outgoing bytes at debug level")

    @field_validator("password", mode="before")
    @classmethod
    def _empty_password_is_none(cls, value):
        # an empty password means no AUTH at all
        if value == "":
            return None
        return value

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"
