from typing import Optional

from app.schemas.base import BaseSchema


class BrandBase(BaseSchema):
    name: str
    logo: Optional[str] = None
    website: Optional[str] = None
    api_key: Optional[str] = None
    api_endpoint: Optional[str] = None
    # Free-form on purpose: unknown values fall back to the generic adapter
    api_type: Optional[str] = None


class BrandCreate(BrandBase):
    pass


class BrandUpdate(BaseSchema):
    name: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    api_key: Optional[str] = None
    api_endpoint: Optional[str] = None
    api_type: Optional[str] = None


class BrandRead(BrandBase):
    id: int

    @property
    def has_api_config(self) -> bool:
        return bool(self.api_key and self.api_endpoint and self.api_type)


class BrandApiStatus(BaseSchema):
    id: int
    name: str
    api_type: Optional[str] = None
    has_api_config: bool
