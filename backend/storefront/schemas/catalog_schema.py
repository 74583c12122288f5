from typing import List, Optional

from pydantic import BaseModel, Field


class Item(BaseModel):
    id: str
    name: str
    description: str = ""
    price: float = Field(..., gt=0)
    bannerImage: str = ""
    images: List[str] = Field(default_factory=list)
    category_id: str
    createdAt: str


class Category(BaseModel):
    id: str
    name: str
    description: str = ""
    image: str = ""
    parent_category_id: Optional[str] = None
    createdAt: str = ""


class CategoryOut(Category):
    parent_name: Optional[str] = None


class ItemPage(BaseModel):
    items: List[Item]
    next_cursor: Optional[str] = None
