from __future__ import annotations

from typing import Annotated

from fastapi import Path


# Ids are 64-bit INTEGER / BIGSERIAL columns; larger values cannot be bound.
MAX_ID = 2**63 - 1

PostId = Annotated[int, Path(ge=1, le=MAX_ID)]
CommentId = Annotated[int, Path(ge=1, le=MAX_ID)]
