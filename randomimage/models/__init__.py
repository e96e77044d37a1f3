from randomimage.models.models import Attachment, Namespace, Page, PageVersion

__all__ = ["Attachment", "Namespace", "Page", "PageVersion"]
