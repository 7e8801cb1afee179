"""Gallery endpoints consumed by the rendering client."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ..exceptions import NavigationUnavailableError
from ..gallery.controller import GalleryController
from .schemas import CursorOut, GalleryStateOut, ImageRecordOut, LoadAllOut, RandomOut


def build_gallery_router(controller: GalleryController) -> APIRouter:
    router = APIRouter(prefix="/api/gallery", tags=["gallery"])

    @router.get("", response_model=GalleryStateOut)
    async def fetch_gallery_state() -> GalleryStateOut:
        return GalleryStateOut(
            images=[ImageRecordOut.from_record(image) for image in controller.images],
            current_index=controller.current_index,
            loading=controller.loading,
            shuffle_loading=controller.shuffle_loading,
            total_available=controller.total_available,
            visible_indices=controller.visible_indices,
        )

    @router.post("/next", response_model=CursorOut)
    async def next_image() -> CursorOut:
        return _cursor(controller, _navigate(controller.next))

    @router.post("/prev", response_model=CursorOut)
    async def previous_image() -> CursorOut:
        return _cursor(controller, _navigate(controller.prev))

    @router.post("/open/{index}", response_model=CursorOut)
    async def open_image(index: int) -> CursorOut:
        try:
            opened = controller.open(index)
        except IndexError:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"status": "error", "reason": "image_not_found", "index": index},
            )
        return _cursor(controller, opened)

    @router.post("/random", response_model=RandomOut)
    async def random_image() -> RandomOut:
        index = await controller.random_image()
        if index is None:
            return RandomOut(status="unavailable", total_available=controller.total_available)
        return RandomOut(
            status="ok",
            current_index=index,
            image=ImageRecordOut.from_record(controller.images[index]),
            total_available=controller.total_available,
        )

    @router.post("/load-all", response_model=LoadAllOut)
    async def load_all_images() -> LoadAllOut:
        count = await controller.load_all()
        return LoadAllOut(count=count, total_available=controller.total_available)

    return router


def _navigate(move) -> int:
    try:
        return move()
    except NavigationUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"status": "error", "reason": "navigation_unavailable", "message": str(exc)},
        )


def _cursor(controller: GalleryController, index: int) -> CursorOut:
    return CursorOut(
        current_index=index,
        image=ImageRecordOut.from_record(controller.images[index]),
    )


__all__ = ["build_gallery_router"]
