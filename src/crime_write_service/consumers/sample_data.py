"""
Ten sample West Yorkshire crimes, for demos and for when the real
dataset file is not available.
"""

import logging

from crime_write_service.models import CrimeRecord

logger = logging.getLogger(__name__)

SAMPLE_CRIMES = [
    CrimeRecord("CRIME001", "Burglary", "West Yorkshire Police",
                "Leeds 001A", 53.8008, -1.5491, "Investigation complete; no suspect identified", "2024-01"),
    CrimeRecord("CRIME002", "Vehicle crime", "West Yorkshire Police",
                "Bradford 002B", 53.7960, -1.7594, "Under investigation", "2024-01"),
    CrimeRecord("CRIME003", "Anti-social behaviour", "West Yorkshire Police",
                "Wakefield 003C", 53.6833, -1.5000, "No further action", "2024-01"),
    CrimeRecord("CRIME004", "Violence and sexual offences", "West Yorkshire Police",
                "Huddersfield 004D", 53.6458, -1.7850, "Awaiting court outcome", "2024-01"),
    CrimeRecord("CRIME005", "Shoplifting", "West Yorkshire Police",
                "Halifax 005E", 53.7248, -1.8583, "Offender given penalty notice", "2024-01"),
    CrimeRecord("CRIME006", "Public order", "West Yorkshire Police",
                "Dewsbury 006F", 53.6900, -1.6300, "Investigation complete; no suspect identified", "2024-02"),
    CrimeRecord("CRIME007", "Criminal damage and arson", "West Yorkshire Police",
                "Keighley 007G", 53.8671, -2.0000, "Under investigation", "2024-02"),
    CrimeRecord("CRIME008", "Drugs", "West Yorkshire Police",
                "Batley 008H", 53.7167, -1.6333, "Offender given a caution", "2024-02"),
    CrimeRecord("CRIME009", "Bicycle theft", "West Yorkshire Police",
                "Castleford 009I", 53.7167, -1.3667, "Investigation complete; no suspect identified", "2024-02"),
    CrimeRecord("CRIME010", "Robbery", "West Yorkshire Police",
                "Pontefract 010J", 53.6833, -1.3167, "Awaiting court outcome", "2024-02"),
]


def load_sample_data(store):
    """Insert the sample crimes only if the store is empty. Returns how many were inserted."""
    if store.count() > 0:
        return 0
    inserted = store.insert_batch(SAMPLE_CRIMES)
    logger.info(f"Loaded {inserted} sample crimes")
    return inserted


def create_sample_data(store, listener):
    """Insert (or replace) the sample crimes and report to an import listener."""
    try:
        store.insert_batch(SAMPLE_CRIMES)
    except Exception as e:
        logger.error(f"Error creating sample data: {e}")
        listener.on_error(f"Failed to create sample data: {e}")
        return
    logger.info("Sample data created successfully")
    listener.on_success(len(SAMPLE_CRIMES))
