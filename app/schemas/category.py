from app.schemas.base import BaseSchema


class CategoryRead(BaseSchema):
    id: int
    name: str
