from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"

    def __str__(self):
        return self.value


class LeadStatus(str, Enum):
    NEW = "NEW"
    CALLING = "CALLING"
    RETRY = "RETRY"
    INTERESTED = "INTERESTED"
    NOT_INTERESTED = "NOT_INTERESTED"
    WRONG_NUMBER = "WRONG_NUMBER"
    DISCONNECTED_NUMBER = "DISCONNECTED_NUMBER"
    DNC = "DNC"
    BOOKED = "BOOKED"
    ONBOARDED = "ONBOARDED"

    def __str__(self):
        return self.value


# Lower rank is called first.
LEAD_QUEUE_PRIORITY = {
    LeadStatus.RETRY: 0,
    LeadStatus.NEW: 1,
}


class SalesStage(str, Enum):
    PROSPECTING = "Prospecting"
    QUALIFICATION = "Qualification"
    DISCOVERY = "Discovery / Demo"
    PROPOSAL = "Proposal"
    NEGOTIATION = "Negotiation"
    WON = "Won"
    LOST = "Lost"

    def __str__(self):
        return self.value


CLOSED_STAGES = {SalesStage.WON, SalesStage.LOST}


class AssetType(str, Enum):
    TRUCK = "Truck"
    TRAILER = "Trailer"

    def __str__(self):
        return self.value


class AssetStatus(str, Enum):
    ACTIVE = "Active"
    MAINTENANCE = "Maintenance"
    INACTIVE = "Inactive"

    def __str__(self):
        return self.value


class LoadStatus(str, Enum):
    PENDING = "Pending"
    DISPATCHED = "Dispatched"
    IN_TRANSIT = "In-Transit"
    DELIVERED = "Delivered"
    INVOICED = "Invoiced"

    def __str__(self):
        return self.value


class TripStatus(str, Enum):
    PLANNED = "Planned"
    ACTIVE = "Active"
    COMPLETED = "Completed"

    def __str__(self):
        return self.value


class StopType(str, Enum):
    PICKUP = "Pickup"
    DELIVERY = "Delivery"
    FUEL = "Fuel"
    REST = "Rest"

    def __str__(self):
        return self.value


class AuditAction(str, Enum):
    CREATE_LEAD = "create_lead"
    UPDATE_LEAD = "update_lead"
    UPDATE_LEAD_STATUS = "update_lead_status"
    DELETE_LEAD = "delete_lead"
    IMPORT_LEADS = "import_leads"
    LOG_CALL = "log_call"
    SYNC_CALLS = "sync_calls"
    CREATE_OPPORTUNITY = "create_opportunity"
    UPDATE_OPPORTUNITY = "update_opportunity"
    DELETE_OPPORTUNITY = "delete_opportunity"
    CREATE_DRIVER = "create_driver"
    CREATE_ASSET = "create_asset"
    CREATE_LOAD = "create_load"
    UPDATE_LOAD = "update_load"
    CREATE_TRIP = "create_trip"
    LOGIN = "login"

    def __str__(self):
        return self.value
