from photomarket.schemas.user import UserCreate, UserResponse, UserLogin, Token
from photomarket.schemas.booking import (
    BookingCreate, BookingResponse, BookingListResponse, BookingCancelResponse,
)
from photomarket.schemas.application import (
    ApplicationCreate, ApplicationResponse, ApplicantResponse, SelectionRequest, SelectionResponse,
)
from photomarket.schemas.payment import PaymentRequest, PaymentResponse
from photomarket.schemas.review import ReviewCreate, ReviewResponse, ReviewSummary, BookingReviewResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "BookingCreate", "BookingResponse", "BookingListResponse", "BookingCancelResponse",
    "ApplicationCreate", "ApplicationResponse", "ApplicantResponse",
    "SelectionRequest", "SelectionResponse",
    "PaymentRequest", "PaymentResponse",
    "ReviewCreate", "ReviewResponse", "ReviewSummary", "BookingReviewResponse",
]
