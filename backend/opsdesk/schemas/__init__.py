from opsdesk.schemas.schemas import CustomerDetails, LinkRequest, LinkResult, PayoutRequest

__all__ = ["CustomerDetails", "LinkRequest", "LinkResult", "PayoutRequest"]
