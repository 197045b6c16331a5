from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from salon_booking.core.config import settings
from salon_booking.services.booking_service import BookingService

router = APIRouter()


def get_booking_service(request: Request) -> BookingService:
    """The service is built once in the app lifespan; tests override this dependency."""
    return request.app.state.booking_service


@router.get("")
async def list_bookings(service: BookingService = Depends(get_booking_service)):
    bookings = await service.list_bookings()
    return {
        "success": True,
        "count": len(bookings),
        "data": [booking.to_json() for booking in bookings],
    }


@router.post("", status_code=201)
async def create_booking(
    payload: Any = Body(None),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.create_booking(payload)
    response = {
        "success": True,
        "message": "Booking created successfully",
        "data": booking.to_json(),
    }
    if booking.note:
        response["message"] = "Booking created successfully (development mode)"
        response["persisted"] = False
    return response


@router.get("/availability/{date}")
async def get_availability(date: str, service: BookingService = Depends(get_booking_service)):
    availability = await service.get_availability(date)
    response = {
        "success": True,
        "date": availability.date,
        "bookedSlots": [slot.model_dump() for slot in availability.bookedSlots],
        "count": availability.count,
    }
    if availability.note:
        response["note"] = availability.note
    return response


@router.get("/{booking_id}")
async def get_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    booking = await service.get_booking(booking_id)
    return {"success": True, "data": booking.to_json()}


@router.put("/{booking_id}")
async def update_booking(
    booking_id: str,
    patch: Any = Body(None),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.update_booking(booking_id, patch)
    return {
        "success": True,
        "message": "Booking updated successfully",
        "data": booking.to_json(),
    }


@router.delete("/{booking_id}")
async def delete_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    # DELETE_MODE picks soft cancellation or removal for the whole deployment
    if settings.DELETE_MODE == "hard":
        await service.delete_booking(booking_id)
        return {"success": True, "message": "Booking deleted successfully"}

    booking = await service.cancel_booking(booking_id)
    return {
        "success": True,
        "message": "Booking cancelled successfully",
        "data": booking.to_json(),
    }
