"""Reference coordinates for Northeast England towns and regular venues."""
from types import MappingProxyType
from typing import Optional

from geo.offsets import offset_from
from processor.models import Coordinates

KNOWN_LOCATIONS = MappingProxyType({
    # Towns and cities
    'newcastle': Coordinates(54.9783, -1.6178),
    'newcastle upon tyne': Coordinates(54.9783, -1.6178),
    'sunderland': Coordinates(54.9069, -1.3838),
    'middlesbrough': Coordinates(54.5742, -1.2349),
    'durham': Coordinates(54.7753, -1.5849),
    'gateshead': Coordinates(54.9537, -1.6103),
    'hartlepool': Coordinates(54.6896, -1.2115),
    'south shields': Coordinates(54.9986, -1.4323),
    'north shields': Coordinates(55.0176, -1.4486),
    'tynemouth': Coordinates(55.0179, -1.4217),
    'whitley bay': Coordinates(55.0390, -1.4465),
    'cramlington': Coordinates(55.0789, -1.5906),
    'hexham': Coordinates(54.9719, -2.1019),
    'consett': Coordinates(54.8521, -1.8317),
    'stanley': Coordinates(54.8697, -1.6947),
    'chester-le-street': Coordinates(54.8556, -1.5706),
    'washington': Coordinates(54.9000, -1.5197),
    'jarrow': Coordinates(54.9806, -1.4847),
    'hebburn': Coordinates(54.9733, -1.5114),
    'seaham': Coordinates(54.8387, -1.3467),
    'ferryhill': Coordinates(54.6998, -1.5639),
    'spennymoor': Coordinates(54.6998, -1.5996),
    'bishop auckland': Coordinates(54.6612, -1.6776),
    'peterlee': Coordinates(54.7610, -1.3372),
    'blyth': Coordinates(55.1278, -1.5085),
    'ashington': Coordinates(55.1883, -1.5686),

    # Regular venues
    'dawdon youth and community centre': Coordinates(54.8400, -1.3480),
    'royal british legion hebburn': Coordinates(54.9740, -1.5120),
    'royal british legion branch meeting': Coordinates(54.9740, -1.5120),
    'royal british legion': Coordinates(54.9990, -1.4330),
    'spennymoor clay pigeon club': Coordinates(54.7010, -1.5650),
    'west house farm': Coordinates(54.7020, -1.5660),
    'iona social club': Coordinates(54.9750, -1.5130),
    'hebburn iona social club': Coordinates(54.9750, -1.5130),
    'hebburn iona social club, station rd': Coordinates(54.9750, -1.5130),

    # Newcastle venues
    'newcastle civic centre': Coordinates(54.9720, -1.6100),
    'newcastle university': Coordinates(54.9800, -1.6130),
    'st james park': Coordinates(54.9755, -1.6220),
    'quayside': Coordinates(54.9690, -1.6040),
    'central station': Coordinates(54.9680, -1.6170),
    'monument': Coordinates(54.9730, -1.6140),
    'grainger market': Coordinates(54.9710, -1.6120),
    'eldon square': Coordinates(54.9750, -1.6160),
    'walker activity dome': Coordinates(54.9850, -1.5800),
    'byker community centre': Coordinates(54.9820, -1.5950),
    'scotswood community centre': Coordinates(54.9650, -1.6600),
    'benwell community centre': Coordinates(54.9700, -1.6400),
    'arthurs hill community centre': Coordinates(54.9760, -1.6300),
    'elswick community centre': Coordinates(54.9720, -1.6350),
})

# Multi-word keys, longest first, so the most specific venue wins.
VENUE_KEYS = tuple(sorted(
    (key for key in KNOWN_LOCATIONS if ' ' in key),
    key=len,
    reverse=True,
))

# Cities matched by containment; markers get a per-string offset.
OFFSET_CITIES = (
    'newcastle upon tyne', 'newcastle', 'sunderland', 'middlesbrough',
    'durham', 'gateshead', 'hartlepool',
)

# Place names recognised as location searches.
KNOWN_PLACES = (
    'newcastle', 'newcastle upon tyne', 'sunderland', 'middlesbrough', 'durham',
    'gateshead', 'hartlepool', 'south shields', 'north shields', 'tynemouth',
    'whitley bay', 'cramlington', 'hexham', 'consett', 'stanley', 'chester-le-street',
    'washington', 'jarrow', 'hebburn', 'seaham', 'ferryhill', 'spennymoor',
    'bishop auckland', 'peterlee', 'blyth', 'ashington',
)


def lookup_known_location(location: Optional[str]) -> Optional[Coordinates]:
    """
    Look a location string up in the known location table.

    Tries an exact match, then venue containment (longest venue first),
    then city containment. City matches are shifted by a deterministic
    per-string offset so distinct venues in the same city do not share
    a marker.

    Args:
        location: Free-text location

    Returns:
        Coordinates, or None when nothing in the table matches
    """
    if not location:
        return None

    location_lower = location.lower().strip()

    exact = KNOWN_LOCATIONS.get(location_lower)
    if exact is not None:
        return exact

    for venue in VENUE_KEYS:
        if venue in location_lower:
            return KNOWN_LOCATIONS[venue]

    for city in OFFSET_CITIES:
        if city in location_lower:
            return offset_from(KNOWN_LOCATIONS[city], location)

    return None
