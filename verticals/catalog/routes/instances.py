"""Book instance pages — read-only list and detail of physical copies."""

from fastapi import APIRouter, Depends, HTTPException, Request

from core.engine.template_engine import Presenter, get_presenter
from verticals.catalog.repository import BookInstanceRepository, get_book_instance_repository

router = APIRouter(prefix="/bookinstances")


@router.get("")
async def bookinstance_list(
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    instances: BookInstanceRepository = Depends(get_book_instance_repository),
):
    bookinstance_list = await instances.list()
    return presenter.render(request, "bookinstance_list", {
        "title": "Book Instance List",
        "bookinstance_list": bookinstance_list,
    })


@router.get("/{instance_id}")
async def bookinstance_detail(
    instance_id: str,
    request: Request,
    presenter: Presenter = Depends(get_presenter),
    instances: BookInstanceRepository = Depends(get_book_instance_repository),
):
    bookinstance = await instances.get(instance_id)
    if bookinstance is None:
        raise HTTPException(status_code=404, detail="Book copy not found")

    return presenter.render(request, "bookinstance_detail", {
        "title": "Book Instance Detail",
        "bookinstance": bookinstance,
    })
