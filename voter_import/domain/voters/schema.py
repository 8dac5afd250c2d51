from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ValueType = Literal["text", "integer", "date"]


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    sqlite_type: str
    value_type: ValueType
    source_name: str


def column(
    name: str,
    sqlite_type: str,
    value_type: ValueType,
    source_name: str,
) -> ColumnSpec:
    return ColumnSpec(
        name=name,
        sqlite_type=sqlite_type,
        value_type=value_type,
        source_name=source_name,
    )


IDENTIFIER_FIELD = "vrcnum"

# Order matches the column order of the headerless voter file.
COLUMN_SPECS: tuple[ColumnSpec, ...] = (
    column("vrcnum", "TEXT", "text", "VRCNUM"),
    column("last_name", "TEXT", "text", "lastName"),
    column("first_name", "TEXT", "text", "firstName"),
    column("middle_initial", "TEXT", "text", "middleInitial"),
    column("suffix_name", "TEXT", "text", "suffixName"),
    column("house_num", "INTEGER", "integer", "houseNum"),
    column("street", "TEXT", "text", "street"),
    column("apartment", "TEXT", "text", "apartment"),
    column("half_address", "TEXT", "text", "halfAddress"),
    column("res_addr_line2", "TEXT", "text", "resAddrLine2"),
    column("res_addr_line3", "TEXT", "text", "resAddrLine3"),
    column("city", "TEXT", "text", "city"),
    column("state", "TEXT", "text", "state"),
    column("zip_code", "TEXT", "text", "zipCode"),
    column("zip_suffix", "TEXT", "text", "zipSuffix"),
    column("telephone", "TEXT", "text", "telephone"),
    column("email", "TEXT", "text", "email"),
    column("mailing_address1", "TEXT", "text", "mailingAddress1"),
    column("mailing_address2", "TEXT", "text", "mailingAddress2"),
    column("mailing_address3", "TEXT", "text", "mailingAddress3"),
    column("mailing_address4", "TEXT", "text", "mailingAddress4"),
    column("mailing_city", "TEXT", "text", "mailingCity"),
    column("mailing_state", "TEXT", "text", "mailingState"),
    column("mailing_zip", "TEXT", "text", "mailingZip"),
    column("mailing_zip_suffix", "TEXT", "text", "mailingZipSuffix"),
    column("party", "TEXT", "text", "party"),
    column("gender", "TEXT", "text", "gender"),
    column("dob", "TEXT", "date", "DOB"),
    column("l_t", "TEXT", "text", "L_T"),
    column("election_district", "INTEGER", "integer", "electionDistrict"),
    column("county_leg_district", "TEXT", "text", "countyLegDistrict"),
    column("state_assembly_district", "TEXT", "text", "stateAssmblyDistrict"),
    column("state_senate_district", "TEXT", "text", "stateSenateDistrict"),
    column("congressional_district", "TEXT", "text", "congressionalDistrict"),
    column("cc_wd_village", "TEXT", "text", "CC_WD_Village"),
    column("town_code", "TEXT", "text", "townCode"),
    column("last_update", "TEXT", "date", "lastUpdate"),
    column("original_reg_date", "TEXT", "date", "originalRegDate"),
    column("statevid", "TEXT", "text", "statevid"),
)

FIELD_NAMES: tuple[str, ...] = tuple(spec.name for spec in COLUMN_SPECS)

CATEGORY_FIELDS: tuple[str, ...] = (
    "city",
    "zip_code",
    "street",
    "county_leg_district",
    "state_assembly_district",
    "state_senate_district",
    "congressional_district",
    "town_code",
    "election_district",
    "party",
)

ARCHIVE_BATCH_COLUMNS: tuple[str, str] = ("record_entry_year", "record_entry_number")
LATEST_BATCH_COLUMNS: tuple[str, str] = ("latest_record_entry_year", "latest_record_entry_number")
DISCREPANCY_COLUMN = "has_discrepancy"


def data_column_specs() -> tuple[ColumnSpec, ...]:
    return tuple(spec for spec in COLUMN_SPECS if spec.name != IDENTIFIER_FIELD)


def archive_insert_columns() -> tuple[str, ...]:
    return FIELD_NAMES + ARCHIVE_BATCH_COLUMNS


def latest_insert_columns() -> tuple[str, ...]:
    return FIELD_NAMES + LATEST_BATCH_COLUMNS + (DISCREPANCY_COLUMN,)
