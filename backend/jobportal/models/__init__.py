from jobportal.models.application import Application, ApplicationDocument
from jobportal.models.company import Company
from jobportal.models.job import Job
from jobportal.models.saved_job import SavedJob
from jobportal.models.user import User

__all__ = ["User", "Company", "Job", "Application", "ApplicationDocument", "SavedJob"]
