from fastapi import FastAPI, HTTPException, Depends, Query
from uuid import UUID
from datetime import date
from typing import List, Optional
from fastapi.security import OAuth2PasswordRequestForm

from api.schemas import (
    # Catalogue
    CreateAgePolicyRequest, AgePolicyResponse, CreateStayTypeRequest, StayTypeResponse,
    CreateRoomTypeRequest, RoomTypeResponse, CreateRatePlanRequest, RatePlanResponse,
    CreateRateRuleRequest, RateRuleResponse, SetAllotmentRequest, AllotmentResponse,
    # Classification
    ClassifyGuestRequest, ClassifyGuestResponse,
    # Availability
    StayAvailabilityResponse, NightlyPriceResponse, CalendarResponse,
    # Pricing
    PriceCalculationRequest, PriceBreakdownResponse,
    # Bookings
    GuestRequest, ValidateBookingRequest, ValidationResponse, CreateBookingRequest,
    CancelBookingRequest, UpdateBookingStatusRequest, BookingGuestResponse, BookingResponse,
    # Auth
    Token, UserResponse
)

from api.dependencies import get_current_active_user, get_current_admin_user, fake_users_db, get_user
from infrastructure.config import get_settings
from infrastructure.logger import setup_logging, get_logger
from infrastructure.security import verify_password, create_access_token
from domain.auth import User

from application.age_classification import AgeClassificationService
from application.availability import AvailabilityService
from application.booking_validation import BookingValidationService, GuestDraft
from application.pricing import RateRuleResolver, PricingService
from application.services import CatalogService, BookingService
from infrastructure.repositories.in_memory_repositories import (
    InMemoryStayTypeRepository, InMemoryRoomTypeRepository, InMemoryRatePlanRepository,
    InMemoryRateRuleRepository, InMemoryAllotmentRepository, InMemoryHotelAgePolicyRepository,
    InMemoryBookingRepository
)
from domain.entities import HotelAgePolicy, StayType, RoomType, RatePlan, RateRule, Allotment
from domain.enums import PricingModel, BookingStatus, GuestCategory, RestrictionType
from domain.exceptions import BusinessRuleViolationError
from domain.value_objects import Money, Occupancy

settings = get_settings()
setup_logging(settings.log_level, settings.log_format)
logger = get_logger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Stay pricing, availability and booking API",
    version=settings.app_version
)

# Initialize repositories
stay_type_repo = InMemoryStayTypeRepository()
room_type_repo = InMemoryRoomTypeRepository()
rate_plan_repo = InMemoryRatePlanRepository()
rate_rule_repo = InMemoryRateRuleRepository()
allotment_repo = InMemoryAllotmentRepository()
age_policy_repo = InMemoryHotelAgePolicyRepository()
booking_repo = InMemoryBookingRepository()

# Engines are built once and shared
age_classifier = AgeClassificationService(
    max_age=settings.max_guest_age,
    inclusive_thresholds=settings.inclusive_age_thresholds
)
rate_rule_resolver = RateRuleResolver(rate_rule_repo)
pricing_service = PricingService(
    rate_rule_resolver,
    default_currency=settings.default_currency,
    default_included_occupancy=settings.default_included_occupancy
)
availability_service = AvailabilityService(
    rate_rule_resolver,
    pricing_service,
    allotment_repo,
    default_max_stay=settings.default_max_stay
)
booking_validator = BookingValidationService(
    age_classifier,
    near_capacity_margin=settings.near_capacity_margin
)
catalog_service = CatalogService(
    stay_type_repo, room_type_repo, rate_plan_repo, rate_rule_repo, allotment_repo, age_policy_repo
)
booking_service = BookingService(
    booking_repo,
    catalog_service,
    availability_service,
    pricing_service,
    rate_rule_resolver,
    booking_validator,
    age_classifier,
    allotment_repo
)

# Dependency injection
def get_catalog_service() -> CatalogService:
    return catalog_service

def get_booking_service() -> BookingService:
    return booking_service

def get_availability_service() -> AvailabilityService:
    return availability_service

def get_pricing_service() -> PricingService:
    return pricing_service

def get_age_classifier() -> AgeClassificationService:
    return age_classifier

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/pricing-model", tags=["Enum Reference"])
async def get_pricing_models():
    """Get all PricingModel enum values"""
    return {
        "values": [f"{item.name}" for item in PricingModel],
        "description": "Pricing model values: OCCUPANCY_BASED, UNIT_INCLUDED_OCCUPANCY"
    }

@app.get("/api/enums/booking-status", tags=["Enum Reference"])
async def get_booking_statuses():
    """Get all BookingStatus enum values"""
    return {
        "values": [f"{item.name}" for item in BookingStatus],
        "description": "Booking status values: PENDING, CONFIRMED, CHECKED_IN, CHECKED_OUT, CANCELLED, NO_SHOW"
    }

@app.get("/api/enums/guest-category", tags=["Enum Reference"])
async def get_guest_categories():
    """Get all GuestCategory enum values"""
    return {
        "values": [f"{item.name}" for item in GuestCategory],
        "description": "Guest category values: INFANT, CHILD, TEEN, ADULT (TEEN is never assigned by age classification)"
    }

@app.get("/api/enums/restriction-type", tags=["Enum Reference"])
async def get_restriction_types():
    """Get all RestrictionType enum values"""
    return {
        "values": [item.value for item in RestrictionType],
        "description": "Reasons a date or stay cannot be sold"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(form_data: OAuth2PasswordRequestForm = Depends()):
    user = get_user(fake_users_db, form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        logger.warning("login_failed", username=form_data.username)
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": user.username})
    return {"access_token": access_token, "token_type": "bearer"}

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# ============================================================================
# CATALOGUE ENDPOINTS
# ============================================================================

@app.post("/api/age-policies", response_model=AgePolicyResponse, status_code=201, tags=["Catalogue"])
async def create_age_policy(
    request: CreateAgePolicyRequest,
    service: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_admin_user)
):
    """Create or replace a hotel age policy"""
    policy = await service.register_age_policy(HotelAgePolicy(**request.model_dump()))
    return AgePolicyResponse(**policy.model_dump())

@app.post("/api/stay-types", response_model=StayTypeResponse, status_code=201, tags=["Catalogue"])
async def create_stay_type(
    request: CreateStayTypeRequest,
    service: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_admin_user)
):
    """Create or replace a stay package"""
    try:
        stay_type = await service.register_stay_type(StayType(**request.model_dump()))
        return _stay_type_to_response(stay_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/stay-types", response_model=List[StayTypeResponse], tags=["Catalogue"])
async def list_stay_types(
    active_only: bool = False,
    service: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all stay packages"""
    stay_types = await service.list_stay_types(active_only=active_only)
    return [_stay_type_to_response(s) for s in stay_types]

@app.get("/api/stay-types/{stay_type_id}", response_model=StayTypeResponse, tags=["Catalogue"])
async def get_stay_type(
    stay_type_id: str,
    service: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get stay package by ID"""
    stay_type = await service.get_stay_type(stay_type_id)
    if not stay_type:
        raise HTTPException(status_code=404, detail="Stay type not found")
    return _stay_type_to_response(stay_type)

@app.post("/api/room-types", response_model=RoomTypeResponse, status_code=201, tags=["Catalogue"])
async def create_room_type(
    request: CreateRoomTypeRequest,
    service: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_admin_user)
):
    """Create or replace a room type"""
    try:
        data = request.model_dump(exclude={"single_use_supplement", "currency"})
        room_type = await service.register_room_type(RoomType(
            **data,
            single_use_supplement=Money(amount=request.single_use_supplement, currency=request.currency)
        ))
        return _room_type_to_response(room_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/rate-plans", response_model=RatePlanResponse, status_code=201, tags=["Catalogue"])
async def create_rate_plan(
    request: CreateRatePlanRequest,
    service: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_admin_user)
):
    """Create or replace a rate plan"""
    try:
        rate_plan = await service.register_rate_plan(RatePlan(**request.model_dump()))
        return RatePlanResponse(
            rate_plan_id=rate_plan.rate_plan_id,
            name=rate_plan.name,
            pricing_model=rate_plan.pricing_model.value,
            currency=rate_plan.currency,
            is_active=rate_plan.is_active
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.post("/api/rate-rules", response_model=RateRuleResponse, status_code=201, tags=["Catalogue"])
async def create_rate_rule(
    request: CreateRateRuleRequest,
    service: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_admin_user)
):
    """Add a date-ranged rate rule to a rate plan"""
    try:
        rate_rule = await service.add_rate_rule(RateRule(**request.model_dump()))
        return RateRuleResponse(**rate_rule.model_dump(exclude={"created_at"}))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.put("/api/allotments", response_model=AllotmentResponse, tags=["Catalogue"])
async def set_allotment(
    request: SetAllotmentRequest,
    service: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_admin_user)
):
    """Create or replace the inventory for a room type on one date"""
    try:
        allotment = await service.set_allotment(Allotment(**request.model_dump(exclude_none=True)))
        return _allotment_to_response(allotment)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

# ============================================================================
# GUEST CLASSIFICATION ENDPOINTS
# ============================================================================

@app.post("/api/guests/classify", response_model=ClassifyGuestResponse, tags=["Guests"])
async def classify_guest(
    request: ClassifyGuestRequest,
    classifier: AgeClassificationService = Depends(get_age_classifier),
    catalog: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    """Classify a guest as INFANT, CHILD or ADULT at check-in"""
    if request.policy_id:
        policy = await catalog.get_age_policy(request.policy_id)
        if not policy:
            raise HTTPException(status_code=404, detail="Age policy not found")
    else:
        policy = HotelAgePolicy(
            policy_id="inline",
            infant_max_age=request.infant_max_age,
            child_max_age=request.child_max_age,
            adult_min_age=request.adult_min_age
        )
    try:
        age = classifier.calculate_age(request.birthdate, request.check_in_date)
        return ClassifyGuestResponse(category=classifier.category_for_age(age, policy), age=age)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

# ============================================================================
# AVAILABILITY ENDPOINTS
# ============================================================================

@app.get("/api/availability/{stay_type_id}", response_model=StayAvailabilityResponse, tags=["Availability"])
async def check_stay_availability(
    stay_type_id: str,
    room_type_id: str,
    rate_plan_id: str,
    check_in_date: date,
    nights: Optional[int] = None,
    adults: int = Query(2, ge=1),
    children: int = Query(0, ge=0),
    infants: int = Query(0, ge=0),
    extra_beds: int = Query(0, ge=0),
    service: AvailabilityService = Depends(get_availability_service),
    catalog: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    """Check whether a stay can be booked and what it costs"""
    stay_type, room_type, rate_plan = await _load_catalogue(catalog, stay_type_id, room_type_id, rate_plan_id)
    nights = nights if nights is not None else stay_type.nights
    if check_in_date < date.today():
        raise HTTPException(status_code=400, detail="Check-in date cannot be in the past")
    if not 1 <= nights <= 365:
        raise HTTPException(status_code=400, detail="Nights must be between 1 and 365")

    try:
        occupancy = Occupancy(adults=adults, children=children, infants=infants, extra_beds=extra_beds)
        result = await service.check_stay_availability(
            stay_type, room_type, rate_plan, check_in_date, nights, occupancy
        )
        return _availability_to_response(result)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/availability/{stay_type_id}/calendar/{year}/{month}", response_model=CalendarResponse, tags=["Availability"])
async def get_availability_calendar(
    stay_type_id: str,
    year: int,
    month: int,
    room_type_id: str,
    rate_plan_id: str,
    adults: int = Query(2, ge=1),
    children: int = Query(0, ge=0),
    infants: int = Query(0, ge=0),
    service: AvailabilityService = Depends(get_availability_service),
    catalog: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    """Day-by-day availability and prices for one month"""
    if not 2020 <= year <= 2100:
        raise HTTPException(status_code=400, detail="Year must be between 2020 and 2100")
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Month must be between 1 and 12")

    stay_type, room_type, rate_plan = await _load_catalogue(catalog, stay_type_id, room_type_id, rate_plan_id)
    calendar = await service.get_month_calendar(
        stay_type, room_type, rate_plan, year, month,
        Occupancy(adults=adults, children=children, infants=infants)
    )
    return CalendarResponse(
        stay_type_id=calendar.stay_type_id,
        room_type_id=calendar.room_type_id,
        rate_plan_id=calendar.rate_plan_id,
        start_date=calendar.start_date,
        end_date=calendar.end_date,
        days=calendar.days,
        total_days=calendar.total_days,
        available_days=calendar.available_days,
        unavailable_days=calendar.unavailable_days,
        min_price=calendar.min_price,
        max_price=calendar.max_price,
        avg_price=calendar.avg_price
    )

# ============================================================================
# PRICING ENDPOINTS
# ============================================================================

@app.post("/api/pricing/calculate", response_model=PriceBreakdownResponse, tags=["Pricing"])
async def calculate_price(
    request: PriceCalculationRequest,
    service: PricingService = Depends(get_pricing_service),
    catalog: CatalogService = Depends(get_catalog_service),
    current_user: User = Depends(get_current_active_user)
):
    """Full price breakdown for a stay"""
    stay_type, room_type, rate_plan = await _load_catalogue(
        catalog, request.stay_type_id, request.room_type_id, request.rate_plan_id
    )
    try:
        occupancy = Occupancy(
            adults=request.adults,
            children=request.children,
            infants=request.infants,
            extra_beds=request.extra_beds
        )
        breakdown = await service.calculate_stay_price(
            stay_type, room_type, rate_plan, request.check_in_date, occupancy, request.nights
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return PriceBreakdownResponse(
        base_price=breakdown.base_price.amount,
        adult_supplement=breakdown.adult_supplement.amount,
        child_supplement=breakdown.child_supplement.amount,
        infant_supplement=breakdown.infant_supplement.amount,
        extra_bed_supplement=breakdown.extra_bed_supplement.amount,
        single_use_supplement=breakdown.single_use_supplement.amount,
        extra_occupancy_charge=breakdown.extra_occupancy_charge.amount,
        total=breakdown.total.amount,
        per_night_total=breakdown.per_night_total().amount,
        currency=breakdown.currency,
        pricing_model=breakdown.pricing_model.value if breakdown.pricing_model else None,
        nights=breakdown.nights,
        is_priced=not breakdown.is_zero()
    )

# ============================================================================
# BOOKING ENDPOINTS
# ============================================================================

@app.post("/api/bookings/validate", response_model=ValidationResponse, tags=["Bookings"])
async def validate_booking(
    request: ValidateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Run every booking check and report all errors and warnings"""
    result = await service.validate_booking(
        stay_type_id=request.stay_type_id,
        room_type_id=request.room_type_id,
        check_in_date=request.check_in_date,
        nights=request.nights,
        guests=_guest_drafts(request.guests),
        extra_beds=request.extra_beds,
        total_price=request.total_price
    )
    return _validation_to_response(result)

@app.post("/api/bookings", response_model=BookingResponse, status_code=201, tags=["Bookings"])
async def create_booking(
    request: CreateBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Create new booking"""
    try:
        booking = await service.create_booking(
            stay_type_id=request.stay_type_id,
            room_type_id=request.room_type_id,
            rate_plan_id=request.rate_plan_id,
            check_in_date=request.check_in_date,
            guests=_guest_drafts(request.guests),
            nights=request.nights,
            extra_beds=request.extra_beds,
            notes=request.notes,
            created_by=current_user.username
        )
        return _booking_to_response(booking)
    except BusinessRuleViolationError as e:
        raise HTTPException(status_code=400, detail=_violation_detail(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

@app.get("/api/bookings", response_model=List[BookingResponse], tags=["Bookings"])
async def list_bookings(
    status: Optional[BookingStatus] = None,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get all bookings"""
    bookings = await service.list_bookings(status)
    return [_booking_to_response(b) for b in bookings]

@app.get("/api/bookings/reference/{reference}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking_by_reference(
    reference: str,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking by reference"""
    booking = await service.get_booking_by_reference(reference)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return _booking_to_response(booking)

@app.get("/api/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Get booking by ID"""
    booking = await service.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return _booking_to_response(booking)

@app.put("/api/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Bookings"])
async def cancel_booking(
    booking_id: UUID,
    request: CancelBookingRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Cancel booking and release its inventory"""
    try:
        booking = await service.cancel_booking(booking_id, request.reason)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return _booking_to_response(booking)

@app.put("/api/bookings/{booking_id}/status", response_model=BookingResponse, tags=["Bookings"])
async def update_booking_status(
    booking_id: UUID,
    request: UpdateBookingStatusRequest,
    service: BookingService = Depends(get_booking_service),
    current_user: User = Depends(get_current_active_user)
):
    """Move booking to a new status"""
    try:
        booking = await service.update_status(booking_id, request.status, request.reason)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return _booking_to_response(booking)

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

async def _load_catalogue(catalog: CatalogService, stay_type_id: str, room_type_id: str, rate_plan_id: str):
    """Fetch the stay type, room type and rate plan or answer 404"""
    stay_type = await catalog.get_stay_type(stay_type_id)
    if not stay_type:
        raise HTTPException(status_code=404, detail="Stay type not found")
    room_type = await catalog.get_room_type(room_type_id)
    if not room_type:
        raise HTTPException(status_code=404, detail="Room type not found")
    rate_plan = await catalog.get_rate_plan(rate_plan_id)
    if not rate_plan:
        raise HTTPException(status_code=404, detail="Rate plan not found")
    return stay_type, room_type, rate_plan

def _guest_drafts(guests: List[GuestRequest]) -> List[GuestDraft]:
    return [
        GuestDraft(name=g.name, birthdate=g.birthdate, guest_category=g.guest_category)
        for g in guests
    ]

def _violation_detail(error: BusinessRuleViolationError) -> dict:
    detail = {"message": str(error)}
    if error.validation is not None:
        detail["errors"] = [issue.model_dump() for issue in error.validation.errors]
    if error.restriction is not None:
        detail["restriction"] = error.restriction.model_dump(mode="json")
    return detail

def _validation_to_response(result) -> ValidationResponse:
    """Convert ValidationResult to ValidationResponse"""
    return ValidationResponse(
        is_valid=result.is_valid,
        errors=list(result.errors),
        warnings=list(result.warnings)
    )

def _stay_type_to_response(stay_type) -> StayTypeResponse:
    """Convert StayType entity to StayTypeResponse"""
    return StayTypeResponse(
        stay_type_id=stay_type.stay_type_id,
        code=stay_type.code,
        name=stay_type.name,
        description=stay_type.description,
        nights=stay_type.nights,
        included_board_type=stay_type.included_board_type.value,
        age_policy_id=stay_type.age_policy_id,
        is_active=stay_type.is_active
    )

def _room_type_to_response(room_type) -> RoomTypeResponse:
    """Convert RoomType entity to RoomTypeResponse"""
    return RoomTypeResponse(
        room_type_id=room_type.room_type_id,
        code=room_type.code,
        name=room_type.name,
        base_occupancy=room_type.base_occupancy,
        max_occupancy=room_type.max_occupancy,
        extra_bed_slots=room_type.extra_bed_slots,
        single_use_supplement=room_type.single_use_supplement.amount,
        currency=room_type.single_use_supplement.currency,
        is_active=room_type.is_active
    )

def _allotment_to_response(allotment) -> AllotmentResponse:
    """Convert Allotment entity to AllotmentResponse"""
    return AllotmentResponse(
        room_type_id=allotment.room_type_id,
        date=allotment.date,
        quantity=allotment.quantity,
        allocated=allotment.allocated,
        remaining=allotment.remaining,
        stop_sell=allotment.stop_sell,
        min_stay=allotment.min_stay,
        max_stay=allotment.max_stay,
        cta=allotment.cta,
        ctd=allotment.ctd,
        version=allotment.version
    )

def _availability_to_response(result) -> StayAvailabilityResponse:
    """Convert StayAvailability to StayAvailabilityResponse"""
    return StayAvailabilityResponse(
        is_available=result.is_available,
        reason=result.reason,
        message=result.message,
        restriction=result.restriction,
        check_in=result.check_in,
        check_out=result.check_out(),
        nights=result.nights,
        available_dates=result.available_dates,
        prices=[
            NightlyPriceResponse(date=p.date, amount=p.price.amount, rate_rule_id=p.rate_rule_id)
            for p in result.prices
        ],
        total_price=result.total_price.amount,
        currency=result.currency,
        rate_rule=result.rate_rule,
        allotments=result.allotments,
        total_available=result.total_available,
        blocked_dates=result.blocked_dates
    )

def _booking_to_response(booking) -> BookingResponse:
    """Convert Booking entity to BookingResponse"""
    return BookingResponse(
        booking_id=booking.booking_id,
        reference=booking.reference,
        stay_type_id=booking.stay_type_id,
        room_type_id=booking.room_type_id,
        rate_plan_id=booking.rate_plan_id,
        check_in_date=booking.check_in_date,
        check_out_date=booking.check_out_date,
        nights=booking.nights(),
        adults=booking.occupancy.adults,
        children=booking.occupancy.children,
        infants=booking.occupancy.infants,
        extra_beds=booking.occupancy.extra_beds,
        guests=[
            BookingGuestResponse(
                guest_id=g.guest_id,
                name=g.name,
                birthdate=g.birthdate,
                guest_category=g.guest_category.value,
                age=g.age
            )
            for g in booking.guests
        ],
        reserved_dates=booking.reserved_dates,
        total_price=booking.total_price.amount,
        currency=booking.total_price.currency,
        status=booking.status.value,
        rate_rule_snapshot=booking.rate_rule_snapshot,
        age_policy_snapshot=booking.age_policy_snapshot,
        price_breakdown_snapshot=booking.price_breakdown_snapshot,
        notes=booking.notes,
        cancellation_reason=booking.cancellation_reason,
        refund_amount=booking.refund_amount.amount if booking.refund_amount else None,
        created_at=booking.created_at,
        modified_at=booking.modified_at,
        created_by=booking.created_by,
        version=booking.version
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
