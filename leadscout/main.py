"""
LeadScout - FastAPI Application
Main entry point with all routes configured.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leadscout.config import Settings, get_settings
from leadscout.database import build_engine, build_session_factory, init_db
from leadscout.core.exceptions import LeadScoutException, UnauthorizedError, ValidationError
from leadscout.core.locks import EntityLocks
from leadscout.schemas.common import ErrorResponse, HealthResponse
from leadscout.services.company_service import CompanyService
from leadscout.services.integrations.base import TransferProcessor
from leadscout.services.integrations.transfers import StripeTransferProcessor, MockTransferProcessor
from leadscout.services.notification_service import NotificationDispatcher, InAppNotificationDispatcher
from leadscout.services.payout_service import PayoutBatchProcessor
from leadscout.services.scheduler import Scheduler, next_weekly, next_monthly

# Import all API routers
from leadscout.api import leads, marketplace, purchases, companies, scouts, notifications, admin

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def build_transfer_processor(settings: Settings) -> TransferProcessor:
    if settings.STRIPE_SECRET_KEY:
        return StripeTransferProcessor(
            settings.STRIPE_SECRET_KEY,
            currency=settings.CURRENCY,
            base_url=settings.STRIPE_API_BASE,
            timeout=settings.PAYOUT_TRANSFER_TIMEOUT_SECONDS,
        )
    if not settings.DEV_MODE:
        logger.warning("STRIPE_SECRET_KEY not configured; payouts use the mock transfer processor")
    return MockTransferProcessor()


def build_scheduler(app: FastAPI) -> Scheduler:
    settings: Settings = app.state.settings
    scheduler = Scheduler()

    async def renew_credits():
        async with app.state.session_factory() as session:
            service = CompanyService(session, settings, app.state.locks, app.state.notifier)
            return await service.renew_monthly_credits()

    scheduler.add_job(
        "weekly_payouts",
        app.state.payout_processor.process_weekly_payouts,
        lambda now: next_weekly(now, settings.PAYOUT_SCHEDULE_DAY, settings.PAYOUT_SCHEDULE_HOUR),
    )
    scheduler.add_job(
        "monthly_credit_renewal",
        renew_credits,
        lambda now: next_monthly(now, settings.CREDIT_RENEWAL_DAY),
    )
    return scheduler


def create_app(
    settings: Optional[Settings] = None,
    transfers: Optional[TransferProcessor] = None,
    notifier: Optional[NotificationDispatcher] = None
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        # Startup
        engine = build_engine(settings)
        app.state.engine = engine
        app.state.session_factory = build_session_factory(engine)
        await init_db(engine)

        app.state.locks = EntityLocks()
        app.state.notifier = notifier or InAppNotificationDispatcher(app.state.session_factory)
        app.state.transfers = transfers or build_transfer_processor(settings)
        app.state.payout_processor = PayoutBatchProcessor(
            app.state.session_factory, settings, app.state.locks,
            app.state.transfers, app.state.notifier
        )
        app.state.scheduler = None
        if settings.SCHEDULER_ENABLED:
            app.state.scheduler = build_scheduler(app)
            app.state.scheduler.start()

        yield

        # Shutdown
        if app.state.scheduler:
            await app.state.scheduler.stop()
        if isinstance(app.state.transfers, StripeTransferProcessor):
            await app.state.transfers.close()
        await engine.dispose()

    configure_logging(settings)

    app = FastAPI(
        title="LeadScout API",
        description="Lead marketplace: purchases, credit ledger and scout payouts",
        version=VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LeadScoutException)
    async def leadscout_exception_handler(request: Request, exc: LeadScoutException):
        content = ErrorResponse(detail=exc.message, code=exc.code).model_dump()
        if isinstance(exc, ValidationError) and exc.errors:
            content["errors"] = exc.errors
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    # Include all routers
    for module in (leads, marketplace, purchases, companies, scouts, notifications, admin):
        app.include_router(module.router, prefix=settings.API_PREFIX)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Health check."""
        return HealthResponse(status="healthy", version=VERSION)

    return app


app = create_app()
