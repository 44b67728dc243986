from model.movie import Movie
from model.theatre import Screen, Show, ShowSeat, ShowStatusEnum, SeatStatusEnum
from model.booking import Booking, BookingStatusLog, BookingStatusEnum, StatusChangedByEnum
from model.payments import Payment, PaymentStatusEnum, PaymentMethodEnum

__all__ = [
    "Movie",
    "Screen",
    "Show",
    "ShowSeat",
    "ShowStatusEnum",
    "SeatStatusEnum",
    "Booking",
    "BookingStatusLog",
    "BookingStatusEnum",
    "StatusChangedByEnum",
    "Payment",
    "PaymentStatusEnum",
    "PaymentMethodEnum",
]
