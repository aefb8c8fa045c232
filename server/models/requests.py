from typing import Any

from shared.models.base import ApiModel


class CompanyDataRequest(ApiModel):
    company_data: dict[str, Any] | None = None


class LinksRequest(ApiModel):
    urls: list[str] = []
