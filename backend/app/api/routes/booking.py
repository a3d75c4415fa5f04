from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_booking_coordinator, require_roles
from app.models.user import User, UserRole
from app.schemas.booking import BookingCreatedOut, BookingRejectedOut, ExtraClassBookingRequest
from app.services.booking.coordinator import BookingCoordinator, BookingResult

router = APIRouter()


def render_booking_result(result: BookingResult) -> JSONResponse:
    if result.ok:
        body = BookingCreatedOut(message=result.message, scheduleId=result.schedule_id)
    else:
        body = BookingRejectedOut(
            message=result.message,
            field=result.field,
            conflict=result.conflict.as_dict() if result.conflict is not None else None,
        )
    return JSONResponse(status_code=result.status_code, content=body.model_dump(exclude_none=True))


@router.post(
    "/book-extra-class",
    status_code=201,
    response_model=BookingCreatedOut,
    responses={400: {"model": BookingRejectedOut}, 409: {"model": BookingRejectedOut}, 500: {"model": BookingRejectedOut}},
)
async def book_extra_class(
    payload: ExtraClassBookingRequest,
    current_user: User = Depends(require_roles(UserRole.professor)),
    coordinator: BookingCoordinator = Depends(get_booking_coordinator),
) -> JSONResponse:
    result = await coordinator.book_extra_class(payload, professor_id=current_user.user_id)
    return render_booking_result(result)
