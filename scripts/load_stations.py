#!/usr/bin/env python3
"""Load Stockholm stop areas into the stop_areas table.

ResRobot has no "list all stops" endpoint, so stations are discovered by
planning trips from a grid of search points across the region (each to a
point 0.05 degrees north-east of it) and collecting every leg endpoint.

Stops outside the Stockholm bounding box are ignored. Existing rows are
updated in place, so the script can be re-run safely.

Usage:
    python scripts/load_stations.py [--dry-run]
"""

import os
import sys
import time
import argparse
import logging
from typing import Dict, List, Tuple

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

import requests
from core.config import settings
from core.database import SessionLocal
from src.transit_bc.stop.domain.entities import StopType
from src.transit_bc.stop.infrastructure.models import StopAreaModel

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Search points covering central, north, south, east and west Stockholm
SEARCH_POINTS: List[Tuple[float, float]] = [
    (59.3293, 18.0686),
    (59.3500, 18.0500),
    (59.3000, 18.0800),
    (59.3300, 17.9800),
    (59.3300, 18.1500),
    (59.4000, 18.0500),
    (59.4500, 17.9500),
    (59.5000, 17.9000),
    (59.2500, 18.0000),
    (59.2000, 17.9500),
    (59.3500, 18.2000),
    (59.3500, 17.8500),
]

DEST_OFFSET = 0.05
NUM_TRIPS = 20

# Stockholm region bounding box
MIN_LAT, MAX_LAT = 59.0, 60.0
MIN_LON, MAX_LON = 17.5, 18.5

# Pause between provider calls
REQUEST_DELAY_SECONDS = 0.2


def _as_list(value) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def fetch_trips(lat: float, lon: float) -> List[Dict]:
    """Fetch trips from a search point to the point north-east of it."""
    params = {
        'originCoordLat': lat,
        'originCoordLong': lon,
        'destCoordLat': round(lat + DEST_OFFSET, 6),
        'destCoordLong': round(lon + DEST_OFFSET, 6),
        'format': 'json',
        'accessId': settings.transit.RESROBOT_API_KEY,
        'numTrips': NUM_TRIPS,
    }
    response = requests.get(f"{settings.transit.RESROBOT_BASE_URL}/trip", params=params, timeout=30)
    response.raise_for_status()
    data = response.json()

    if data.get('errorCode'):
        logger.warning(f"  Provider error {data['errorCode']} at {lat}, {lon}")
        return []
    return _as_list(data.get('Trip'))


def extract_stations(trips: List[Dict], stations: Dict[str, Dict]) -> int:
    """Add leg endpoints inside the bounding box to ``stations``.

    Stations are keyed by ``name_lat_lon``; returns how many were new.
    """
    added = 0
    for trip in trips:
        for leg in _as_list((trip.get('LegList') or {}).get('Leg')):
            for endpoint in (leg.get('Origin'), leg.get('Destination')):
                if not endpoint or not endpoint.get('name'):
                    continue
                try:
                    lat = float(endpoint['lat'])
                    lon = float(endpoint['lon'])
                except (KeyError, TypeError, ValueError):
                    continue

                if not (MIN_LAT <= lat <= MAX_LAT and MIN_LON <= lon <= MAX_LON):
                    continue

                key = f"{endpoint['name']}_{lat}_{lon}"
                if key in stations:
                    continue

                stations[key] = {
                    'id': str(endpoint.get('extId') or endpoint.get('id') or f"RR_{len(stations)}"),
                    'name': endpoint['name'],
                    'lat': lat,
                    'lon': lon,
                }
                added += 1
    return added


def discover_stations() -> Dict[str, Dict]:
    stations: Dict[str, Dict] = {}

    for lat, lon in SEARCH_POINTS:
        logger.info(f"Scanning area: {lat}, {lon}")
        try:
            trips = fetch_trips(lat, lon)
        except requests.RequestException as e:
            logger.error(f"  Failed scanning {lat}, {lon}: {e}")
            continue

        added = extract_stations(trips, stations)
        logger.info(f"  {len(trips)} trips, {added} new stations")
        time.sleep(REQUEST_DELAY_SECONDS)

    return stations


def save_stations(db, stations: Dict[str, Dict], dry_run: bool = False) -> Dict[str, int]:
    """Upsert discovered stations by id."""
    stats = {'inserted': 0, 'updated': 0}

    for station in stations.values():
        existing = db.get(StopAreaModel, station['id'])
        if existing:
            stats['updated'] += 1
        else:
            stats['inserted'] += 1

        if dry_run:
            continue

        if existing:
            existing.name = station['name']
            existing.lat = station['lat']
            existing.lon = station['lon']
            existing.type = StopType.from_name(station['name'])
        else:
            db.add(StopAreaModel(
                id=station['id'],
                name=station['name'],
                lat=station['lat'],
                lon=station['lon'],
                type=StopType.from_name(station['name']),
            ))
            # Endpoints sharing an id update this row on later iterations
            db.flush()

    if not dry_run:
        db.commit()

    return stats


def main():
    parser = argparse.ArgumentParser(description='Load Stockholm stations from ResRobot')
    parser.add_argument('--dry-run', action='store_true', help='Show what would be done without saving')
    args = parser.parse_args()

    if not settings.transit.RESROBOT_API_KEY:
        logger.error("RESROBOT_API_KEY is required")
        sys.exit(1)

    if args.dry_run:
        logger.info("DRY RUN - No changes will be made")

    stations = discover_stations()
    if not stations:
        logger.error("No stations found - check API key and connection")
        sys.exit(1)

    db = SessionLocal()
    try:
        stats = save_stations(db, stations, dry_run=args.dry_run)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to save stations: {e}")
        sys.exit(1)
    finally:
        db.close()

    logger.info("=" * 60)
    logger.info("LOAD COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Stations discovered: {len(stations)}")
    logger.info(f"Inserted: {stats['inserted']}")
    logger.info(f"Updated: {stats['updated']}")
    if args.dry_run:
        logger.info("[DRY RUN - no changes saved]")
    logger.info("=" * 60)


if __name__ == '__main__':
    main()
