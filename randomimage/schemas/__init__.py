from randomimage.schemas.schemas import (
    NamespaceCreate, NamespaceResponse,
    PageCreate, PageUpdate, PageResponse, PageSummary,
    AttachmentResponse,
    RenderResponse, RandomImageResponse,
    CONTENT_FORMATS,
)

__all__ = [
    "NamespaceCreate", "NamespaceResponse",
    "PageCreate", "PageUpdate", "PageResponse", "PageSummary",
    "AttachmentResponse",
    "RenderResponse", "RandomImageResponse",
    "CONTENT_FORMATS",
]
