"""Pydantic schemas for the JSON search response."""

from datetime import date
from typing import Optional

from pydantic import BaseModel


class AuthorOut(BaseModel):
    id: str
    first_name: str
    family_name: str
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None
    image_path: Optional[str] = None
    # virtual fields
    name: str
    url: str
    lifespan: str = ""
    date_of_birth_formatted: str = ""
    date_of_death_formatted: str = ""
    date_of_birth_yyyy_mm_dd: str = ""
    date_of_death_yyyy_mm_dd: str = ""


class BookOut(BaseModel):
    id: str
    title: str
    author: str
    summary: str
    isbn: str
    genre: list[str] = []
    # virtual fields
    url: str


class SearchResponse(BaseModel):
    books: list[BookOut]
    authors: list[AuthorOut]


class ErrorResponse(BaseModel):
    message: str
