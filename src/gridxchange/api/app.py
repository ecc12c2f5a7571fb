"""FastAPI application for the energy marketplace."""

import logging
from functools import wraps
from typing import Any, Callable, Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from ..core import MarketplaceService
from ..models import EntryKind, EntryStatus
from ..validation import ErrorKind, MarketError
from .models import (
    AcceptRequest,
    CallerRequest,
    DistanceRequest,
    DistanceResponse,
    EntryCreateRequest,
    EntryResponse,
    HouseholdCreateRequest,
    HouseholdResponse,
    ReadingsUpdateRequest,
    SweepResponse,
    TradeResponse,
)
from .service import MarketplaceAPIService

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

ERROR_STATUS_CODES = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_COMPLETED: status.HTTP_409_CONFLICT,
    ErrorKind.INELIGIBLE: 422,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
}


def handle_api_errors(operation_name: str) -> Callable:
    """
    Decorator to handle marketplace exceptions with consistent error responses.

    Args:
        operation_name: Name of the operation for logging purposes

    Returns:
        Decorated function with standardized error handling
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except MarketError as e:
                status_code = ERROR_STATUS_CODES.get(
                    e.kind, status.HTTP_400_BAD_REQUEST
                )
                logger.warning(f"{operation_name} - {e.kind.value}: {e}")
                raise HTTPException(status_code=status_code, detail=e.message)
            except ValueError as e:
                logger.warning(f"{operation_name} - Request validation error: {e}")
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)
                )
            except Exception as e:
                # Log the error internally but don't expose details
                logger.error(f"{operation_name} - Internal error: {e}", exc_info=True)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail=f"Internal server error during {operation_name.lower()}",
                )

        return wrapper

    return decorator


def create_app(service: Optional[MarketplaceService] = None) -> FastAPI:
    """Build the API around a marketplace service.

    Args:
        service: Optional service instance. Creates an in-memory one if None.
    """
    app = FastAPI(
        title="GridXchange Marketplace API",
        description="Peer-to-peer solar energy offers, requests and trades",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Allow all origins for development
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["*"],
    )

    api = MarketplaceAPIService(service)
    app.state.marketplace = api

    @app.get("/", tags=["Health"])
    async def root():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "gridxchange-marketplace-api",
            "version": API_VERSION,
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Detailed health check."""
        return {
            "status": "healthy",
            "store": type(api.service.store).__name__,
            "transactions": api.service.store.supports_transactions,
        }

    # Households

    @app.post(
        "/households",
        response_model=HouseholdResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Households"],
    )
    @handle_api_errors("Register household")
    async def register_household(request: HouseholdCreateRequest) -> HouseholdResponse:
        return await api.register_household(request)

    @app.get("/households", response_model=list[HouseholdResponse], tags=["Households"])
    @handle_api_errors("List households")
    async def list_households(user_id: Optional[str] = None) -> list[HouseholdResponse]:
        return await api.list_households(user_id)

    @app.get(
        "/households/{household_id}", response_model=HouseholdResponse, tags=["Households"]
    )
    @handle_api_errors("Get household")
    async def get_household(household_id: str) -> HouseholdResponse:
        return await api.get_household(household_id)

    @app.put(
        "/households/{household_id}/readings",
        response_model=HouseholdResponse,
        tags=["Households"],
    )
    @handle_api_errors("Update readings")
    async def update_readings(
        household_id: str, request: ReadingsUpdateRequest
    ) -> HouseholdResponse:
        return await api.update_readings(
            household_id, request.current_generation_kwh, request.current_consumption_kwh
        )

    @app.get(
        "/households/{household_id}/eligible/{kind}",
        response_model=list[EntryResponse],
        tags=["Marketplace"],
    )
    @handle_api_errors("List eligible entries")
    async def list_eligible(
        household_id: str,
        kind: EntryKind,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius_km: Optional[float] = None,
    ) -> list[EntryResponse]:
        """
        Entries of `kind` the household may accept right now.

        With `latitude`/`longitude` the list is limited to posters within
        `radius_km` (default radius when omitted) and sorted nearest first.
        """
        return await api.list_eligible(kind, household_id, latitude, longitude, radius_km)

    @app.get(
        "/households/{household_id}/trades",
        response_model=list[TradeResponse],
        tags=["Trades"],
    )
    @handle_api_errors("Trade history")
    async def trade_history(household_id: str, active_only: bool = False) -> list[TradeResponse]:
        return await api.trade_history(household_id, active_only)

    # Entries

    @app.post(
        "/offers",
        response_model=EntryResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Marketplace"],
    )
    @handle_api_errors("Post offer")
    async def post_offer(request: EntryCreateRequest) -> EntryResponse:
        return await api.post_entry(EntryKind.OFFER, request)

    @app.post(
        "/requests",
        response_model=EntryResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Marketplace"],
    )
    @handle_api_errors("Post request")
    async def post_request(request: EntryCreateRequest) -> EntryResponse:
        return await api.post_entry(EntryKind.REQUEST, request)

    @app.get("/offers", response_model=list[EntryResponse], tags=["Marketplace"])
    @handle_api_errors("List offers")
    async def list_offers(entry_status: Optional[EntryStatus] = None) -> list[EntryResponse]:
        return await api.list_entries(EntryKind.OFFER, entry_status)

    @app.get("/requests", response_model=list[EntryResponse], tags=["Marketplace"])
    @handle_api_errors("List requests")
    async def list_requests(entry_status: Optional[EntryStatus] = None) -> list[EntryResponse]:
        return await api.list_entries(EntryKind.REQUEST, entry_status)

    @app.post("/entries/sweep", response_model=SweepResponse, tags=["Marketplace"])
    @handle_api_errors("Sweep expired entries")
    async def sweep_expired() -> SweepResponse:
        return SweepResponse(cancelled=await api.sweep_expired())

    @app.get("/entries/{entry_id}", response_model=EntryResponse, tags=["Marketplace"])
    @handle_api_errors("Get entry")
    async def get_entry(entry_id: str) -> EntryResponse:
        return await api.get_entry(entry_id)

    @app.post(
        "/entries/{entry_id}/cancel", response_model=EntryResponse, tags=["Marketplace"]
    )
    @handle_api_errors("Cancel entry")
    async def cancel_entry(entry_id: str, request: CallerRequest) -> EntryResponse:
        return await api.cancel_entry(entry_id, request.caller_user_id)

    @app.post(
        "/entries/{entry_id}/accept",
        response_model=TradeResponse,
        status_code=status.HTTP_201_CREATED,
        tags=["Trades"],
    )
    @handle_api_errors("Accept entry")
    async def accept_entry(entry_id: str, request: AcceptRequest) -> TradeResponse:
        """
        Accept an offer or request on behalf of a household.

        Accepting a request makes the household the provider; accepting an
        offer makes it the receiver. Returns 409 when the entry was taken
        first or has expired.
        """
        return await api.accept_entry(entry_id, request.household_id, request.caller_user_id)

    # Trades

    @app.get("/trades", response_model=list[TradeResponse], tags=["Trades"])
    @handle_api_errors("List trades")
    async def list_trades() -> list[TradeResponse]:
        return await api.all_trades()

    @app.get("/trades/{trade_id}", response_model=TradeResponse, tags=["Trades"])
    @handle_api_errors("Get trade")
    async def get_trade(trade_id: str) -> TradeResponse:
        return await api.get_trade(trade_id)

    @app.post("/trades/{trade_id}/complete", response_model=TradeResponse, tags=["Trades"])
    @handle_api_errors("Complete trade")
    async def complete_trade(trade_id: str, request: CallerRequest) -> TradeResponse:
        """
        Complete a trade and settle both households exactly once.

        A second completion returns 409 and leaves the figures untouched.
        """
        return await api.complete_trade(trade_id, request.caller_user_id)

    # Reporting and geo utilities

    @app.get("/summary", tags=["Reporting"])
    @handle_api_errors("Marketplace summary")
    async def summary() -> dict[str, Any]:
        return await api.summary()

    @app.post("/geo/distance", response_model=DistanceResponse, tags=["Geo"])
    @handle_api_errors("Distance")
    async def distance(request: DistanceRequest) -> DistanceResponse:
        return api.distance(request)

    @app.get("/geo/suggested-radius/{location_type}", tags=["Geo"])
    @handle_api_errors("Suggested radius")
    async def suggested_radius(location_type: str) -> dict[str, Any]:
        return {
            "location_type": location_type,
            "radius_km": api.suggested_radius(location_type),
        }

    return app


app = create_app()
