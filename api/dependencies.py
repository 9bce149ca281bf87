"""API Dependencies - Authentication and service wiring"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from typing import Optional
from uuid import uuid5, NAMESPACE_DNS

from application.booking_saga import BookingCreationSaga
from application.guest_information import GuestInformationService
from application.hold_ledger import HoldLedger
from application.services import AvailabilityService, BookingService, CustomerService, PropertyService
from domain.auth import AdminRole, User, UserInDB
from infrastructure.config import Settings
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


class AdminDirectory:
    """Administrator accounts, configured through settings"""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._hashed_password: Optional[str] = None

    def _hashed(self) -> str:
        # Hash lazily on first access
        if self._hashed_password is None:
            self._hashed_password = get_password_hash(self._settings.ADMIN_PASSWORD)
        return self._hashed_password

    def get_user(self, username: str) -> Optional[UserInDB]:
        if username != self._settings.ADMIN_USERNAME:
            return None
        return UserInDB(
            # Stable id across restarts
            user_id=uuid5(NAMESPACE_DNS, f"admin.{username}"),
            username=username,
            email=self._settings.ADMIN_EMAIL,
            full_name=self._settings.ADMIN_FULL_NAME,
            role=AdminRole.OWNER,
            disabled=False,
            hashed_password=self._hashed()
        )


def _container(request: Request):
    return request.app.state.container


def get_settings_dependency(request: Request) -> Settings:
    return _container(request).settings


def get_admin_directory(request: Request) -> AdminDirectory:
    return _container(request).admins


def get_booking_saga(request: Request) -> BookingCreationSaga:
    return _container(request).booking_saga


def get_booking_service(request: Request) -> BookingService:
    return _container(request).booking_service


def get_availability_service(request: Request) -> AvailabilityService:
    return _container(request).availability_service


def get_property_service(request: Request) -> PropertyService:
    return _container(request).property_service


def get_customer_service(request: Request) -> CustomerService:
    return _container(request).customer_service


def get_hold_ledger(request: Request) -> HoldLedger:
    return _container(request).ledger


def get_guest_information_service(request: Request) -> GuestInformationService:
    return _container(request).guest_information


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings_dependency),
    admins: AdminDirectory = Depends(get_admin_directory)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token, settings)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        raise credentials_exception

    user = admins.get_user(token_data.username)
    if user is None:
        raise credentials_exception
    return user

async def get_current_active_user(current_user: User = Depends(get_current_user)):
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user
