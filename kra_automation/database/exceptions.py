class CompanyNotFoundError(Exception):
    """Raised when a company row does not exist in the company table."""
