from photomarket.models.user import User, Client, Photographer
from photomarket.models.portfolio import PortfolioImage
from photomarket.models.booking import Booking
from photomarket.models.application import BookingApplication
from photomarket.models.payment import Payment
from photomarket.models.review import Review

__all__ = [
    "User", "Client", "Photographer", "PortfolioImage",
    "Booking", "BookingApplication", "Payment", "Review",
]
