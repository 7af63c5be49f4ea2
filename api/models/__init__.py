# Models module
from .source_item import SourceItemModel, SourceItemKind
from .content_record import ContentRecordModel, ContentStatusEnum, ImageReference, NewsTypeEnum

__all__ = [
    "SourceItemModel",
    "SourceItemKind",
    "ContentRecordModel",
    "ContentStatusEnum",
    "ImageReference",
    "NewsTypeEnum",
]
