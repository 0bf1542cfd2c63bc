"""Explicit mapping from snake_case rows to camelCase API records"""
from dispatchdesk.models.lead import Lead, Note
from dispatchdesk.models.call_log import CallLog
from dispatchdesk.models.opportunity import Opportunity
from dispatchdesk.models.fleet import Driver, Asset, Load, Trip, Stop
from dispatchdesk.schemas.lead import LeadOut, NoteOut
from dispatchdesk.schemas.call_log import CallLogOut
from dispatchdesk.schemas.opportunity import OpportunityOut
from dispatchdesk.schemas.fleet import DriverOut, AssetOut, LoadOut, TripOut, StopOut
from dispatchdesk.utils.timeutils import as_utc


def build_note_response(note: Note) -> NoteOut:
    return NoteOut(
        id=note.id,
        content=note.content,
        timestamp=as_utc(note.timestamp),
    )


def build_lead_response(lead: Lead) -> LeadOut:
    return LeadOut(
        id=lead.id,
        serial_number=lead.serial_number,
        company_name=lead.company_name,
        mc_number=lead.mc_number,
        dot_number=lead.dot_number,
        phone_number=lead.phone_number,
        email=lead.email,
        state=lead.state,
        address=lead.address,
        truck_count=lead.truck_count,
        status=lead.status,
        last_call_time=as_utc(lead.last_call_time),
        next_follow_up=as_utc(lead.next_follow_up),
        source=lead.source,
        notes=[build_note_response(n) for n in lead.notes],
        created_at=as_utc(lead.created_at),
        updated_at=as_utc(lead.updated_at),
    )


def build_call_log_response(log: CallLog) -> CallLogOut:
    return CallLogOut(
        id=log.id,
        lead_id=log.lead_id,
        company_name=log.lead.company_name if log.lead else None,
        phone_number=log.phone_number,
        outcome=log.outcome,
        note=log.notes,
        timestamp=as_utc(log.timestamp),
        duration_seconds=log.duration_seconds or 0,
        recording_url=log.recording_url,
    )


def build_opportunity_response(opp: Opportunity) -> OpportunityOut:
    return OpportunityOut(
        id=opp.id,
        title=opp.title,
        company_name=opp.company_name,
        value=opp.value or 0.0,
        stage=opp.stage,
        owner=opp.owner,
        next_action=opp.next_action,
        expected_close_date=opp.expected_close_date,
        probability=opp.probability,
    )


def build_driver_response(driver: Driver) -> DriverOut:
    return DriverOut(
        id=driver.id,
        name=driver.name,
        email=driver.email,
        phone=driver.phone,
        license_number=driver.license_number,
        status=driver.status,
        created_at=as_utc(driver.created_at),
    )


def build_asset_response(asset: Asset) -> AssetOut:
    return AssetOut(
        id=asset.id,
        unit_number=asset.unit_number,
        type=asset.type,
        make_model=asset.make_model,
        vin=asset.vin,
        plate_number=asset.plate_number,
        status=asset.status,
        current_location=asset.current_location,
        created_at=as_utc(asset.created_at),
    )


def build_load_response(load: Load) -> LoadOut:
    return LoadOut(
        id=load.id,
        customer_name=load.customer_name,
        pickup_date=as_utc(load.pickup_date),
        delivery_date=as_utc(load.delivery_date),
        rate=load.rate,
        distance_miles=load.distance_miles,
        weight_lbs=load.weight_lbs,
        commodity=load.commodity,
        status=load.status,
        notes=load.notes,
        created_at=as_utc(load.created_at),
    )


def build_stop_response(stop: Stop) -> StopOut:
    return StopOut(
        id=stop.id,
        trip_id=stop.trip_id,
        load_id=stop.load_id,
        stop_sequence=stop.stop_sequence,
        type=stop.type,
        location_name=stop.location_name,
        address=stop.address,
        scheduled_time=as_utc(stop.scheduled_time),
    )


def build_trip_response(trip: Trip) -> TripOut:
    return TripOut(
        id=trip.id,
        driver_id=trip.driver_id,
        truck_id=trip.truck_id,
        trailer_id=trip.trailer_id,
        status=trip.status,
        start_time=as_utc(trip.start_time),
        end_time=as_utc(trip.end_time),
        total_miles=trip.total_miles,
        driver=build_driver_response(trip.driver) if trip.driver else None,
        truck=build_asset_response(trip.truck) if trip.truck else None,
        trailer=build_asset_response(trip.trailer) if trip.trailer else None,
        stops=[build_stop_response(s) for s in trip.stops],
    )


def build_lead_response_list(leads: list) -> list:
    return [build_lead_response(lead) for lead in leads]


def build_call_log_response_list(logs: list) -> list:
    return [build_call_log_response(log) for log in logs]


def build_opportunity_response_list(opps: list) -> list:
    return [build_opportunity_response(opp) for opp in opps]
