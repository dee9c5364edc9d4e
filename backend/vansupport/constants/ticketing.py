"""Enumerations shared by the ticket models, routes and scripts."""
from __future__ import annotations

PRIORITIES = ('low', 'normal', 'high', 'urgent')
DEFAULT_PRIORITY = 'normal'
# Queue order: urgent first
PRIORITY_ORDER = {'urgent': 0, 'high': 1, 'normal': 2, 'low': 3}

URGENCIES = ('low', 'medium', 'high')

AUTHOR_CUSTOMER = 'customer'
AUTHOR_TECH = 'tech'
AUTHOR_SYSTEM = 'system'
AUTHOR_TYPES = (AUTHOR_CUSTOMER, AUTHOR_TECH, AUTHOR_SYSTEM)

VAN_MAKES = ('Ford', 'RAM', 'Mercedes')

DEFAULT_CATEGORIES = (
    ('Electrical', 'Batteries, wiring, lighting and charging'),
    ('Mechanical', 'Engine, brakes, suspension and tires'),
    ('Body & Interior', 'Doors, panels, seating and shelving'),
    ('Equipment', 'Upfit equipment and accessories'),
    ('Other', 'Anything that does not fit another category'),
)

# Upload limits by media family
MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_VIDEO_BYTES = 50 * 1024 * 1024
