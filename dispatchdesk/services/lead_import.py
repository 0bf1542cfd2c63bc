"""Lead spreadsheet import: header matching and row normalization.

Carrier lists come from many sources (FMCSA exports, purchased lists, hand
made sheets), so each lead field accepts several header spellings.
"""
import logging
import re
from typing import List, Optional
from dispatchdesk.schemas.lead import LeadFields
from dispatchdesk.utils.spreadsheet import read_table, resolve_columns, cell, parse_int

logger = logging.getLogger(__name__)

LEAD_COLUMNS = {
    "company_name": ("company_name", "company", "legal_name", "carrier_name", "carrier", "dba_name", "name", "business_name"),
    "mc_number": ("mc_number", "mc", "mc_no", "mc_mx_ff_number", "docket_number", "mc_num"),
    "dot_number": ("dot_number", "dot", "usdot", "usdot_number", "dot_no", "dot_num"),
    "phone_number": ("phone_number", "phone", "telephone", "phone_no", "contact_phone", "mobile", "cell"),
    "email": ("email", "email_address", "e_mail", "contact_email"),
    "state": ("state", "st", "phy_state", "physical_state", "mailing_state"),
    "address": ("address", "physical_address", "phy_address", "mailing_address", "location", "street"),
    "truck_count": ("truck_count", "trucks", "power_units", "units", "nbr_power_unit", "fleet_size"),
}

# "DALLAS, TX 75001" / "Dallas, tx 75001-1234"
_STATE_IN_ADDRESS = re.compile(r",\s*([A-Za-z]{2})\s+\d{5}(?:-\d{4})?\b")


def state_from_address(address: Optional[str]) -> Optional[str]:
    if not address:
        return None
    matches = _STATE_IN_ADDRESS.findall(address)
    return matches[-1].upper() if matches else None


def _clean_state(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.upper() if len(value) == 2 else value


def parse_lead_sheet(content: bytes, filename: Optional[str] = None) -> List[LeadFields]:
    df = read_table(content, filename)
    columns = resolve_columns(df.columns, LEAD_COLUMNS)
    logger.debug(f"Lead sheet column mapping: {columns}")

    leads = []
    skipped = 0
    for row in df.to_dict(orient="records"):
        company_name = cell(row, columns["company_name"])
        phone_number = cell(row, columns["phone_number"])
        if not company_name and not phone_number:
            skipped += 1
            continue

        address = cell(row, columns["address"])
        state = _clean_state(cell(row, columns["state"])) or state_from_address(address)

        leads.append(LeadFields(
            company_name=company_name or "Unknown Carrier",
            mc_number=cell(row, columns["mc_number"]),
            dot_number=cell(row, columns["dot_number"]),
            phone_number=phone_number,
            email=cell(row, columns["email"]),
            state=state,
            address=address,
            truck_count=parse_int(cell(row, columns["truck_count"])),
        ))

    if skipped:
        logger.info(f"Skipped {skipped} blank rows in lead sheet {filename or ''}")
    return leads
