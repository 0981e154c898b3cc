from jobportal.schemas.application import (
    ApplicationOut,
    ApplicationStatusUpdate,
    ApplicationWithdrawRequest,
    DocumentMetadataOut,
)
from jobportal.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserOut
from jobportal.schemas.company import CompanyCreate, CompanyOut, CompanyUpdate
from jobportal.schemas.job import DeleteResponse, JobCreate, JobOut, JobUpdate
from jobportal.schemas.saved_job import SavedJobOut

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "AuthResponse",
    "UserOut",
    "CompanyCreate",
    "CompanyUpdate",
    "CompanyOut",
    "JobCreate",
    "JobUpdate",
    "JobOut",
    "DeleteResponse",
    "ApplicationOut",
    "ApplicationStatusUpdate",
    "ApplicationWithdrawRequest",
    "DocumentMetadataOut",
    "SavedJobOut",
]
