"""Role names and the capability sets attached to them.
The role set is small and fixed; never rename a role silently, the dashboard
gates whole sections on these names.
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, List


class RoleName(str, Enum):
    ADMIN = 'admin'
    MANAGER = 'manager'
    VIEWER = 'viewer'


ALL_PERMISSIONS = [
    'view_dashboard', 'view_analytics', 'view_reports', 'export_data',
    'manage_tickets', 'manage_fleet',
    'manage_users', 'manage_roles', 'manage_settings',
]

ROLE_PRESETS: Dict[str, Dict[str, object]] = {
    RoleName.ADMIN.value: {
        'description': 'Full system access with all permissions',
        'permissions': list(ALL_PERMISSIONS),
    },
    RoleName.MANAGER.value: {
        'description': 'Works the ticket queues and maintains owners and vans',
        'permissions': ['view_dashboard', 'view_analytics', 'view_reports', 'export_data', 'manage_tickets', 'manage_fleet'],
    },
    RoleName.VIEWER.value: {
        'description': 'Read-only access to dashboard',
        'permissions': ['view_dashboard'],
    },
}

# Roles allowed to work tickets (tech views)
TECH_ROLES = (RoleName.MANAGER.value, RoleName.ADMIN.value)


def role_permissions(role_names: List[str]) -> List[str]:
    perms = set()
    for name in role_names:
        preset = ROLE_PRESETS.get(name)
        if preset:
            perms.update(preset['permissions'])
    return sorted(perms)
