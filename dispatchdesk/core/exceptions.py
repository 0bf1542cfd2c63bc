"""Domain errors raised by the service layer and translated at the API boundary"""


class NotFoundError(Exception):
    resource_name = "Resource"

    def __init__(self, resource_id=None):
        self.resource_id = resource_id
        if resource_id is not None:
            message = f"{self.resource_name} with id {resource_id} not found"
        else:
            message = f"{self.resource_name} not found"
        super().__init__(message)


class LeadNotFoundError(NotFoundError):
    resource_name = "Lead"


class OpportunityNotFoundError(NotFoundError):
    resource_name = "Opportunity"


class DriverNotFoundError(NotFoundError):
    resource_name = "Driver"


class AssetNotFoundError(NotFoundError):
    resource_name = "Asset"


class LoadNotFoundError(NotFoundError):
    resource_name = "Load"


class TripNotFoundError(NotFoundError):
    resource_name = "Trip"


class TelephonyError(Exception):
    """Base class for call report sync failures"""


class ReportCreationError(TelephonyError):
    pass


class ReportFailedError(TelephonyError):
    pass


class ReportTimeoutError(TelephonyError):
    pass


class ReportDownloadError(TelephonyError):
    pass


class SpreadsheetError(ValueError):
    pass


class SoftphoneError(Exception):
    pass


class SoftphoneConfigError(SoftphoneError):
    pass


class SoftphoneStateError(SoftphoneError):
    pass
