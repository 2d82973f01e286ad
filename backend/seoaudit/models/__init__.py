from seoaudit.models.base import Base
from seoaudit.models.audit import SeoAuditJob

__all__ = ["Base", "SeoAuditJob"]
