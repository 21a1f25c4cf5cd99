# Overview: Lookups over the permission catalogue.

from .definitions import PERMISSION_DEFINITIONS


_CODES = frozenset(perm[0] for perm in PERMISSION_DEFINITIONS)


def get_all_permission_codes():
    """Every permission code, in catalogue order."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category):
    """(code, name, description, category) tuples for one category."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def validate_permission_code(code):
    return code in _CODES
