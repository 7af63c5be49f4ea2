# Schemas module
from .requests import ProcessRequest, BatchRequest
from .responses import (
    ProcessResponse,
    BatchResponse,
    ReconcileResponse,
    QueueResponse,
    SourceItemStatusResponse,
    ErrorResponse
)

__all__ = [
    "ProcessRequest",
    "BatchRequest",
    "ProcessResponse",
    "BatchResponse",
    "ReconcileResponse",
    "QueueResponse",
    "SourceItemStatusResponse",
    "ErrorResponse"
]
