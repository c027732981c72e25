"""
Design versioning: semantic version bumps and snapshot diffs.
"""
from typing import Dict, Any, List, Optional, Tuple

from netdesigner.models.version import DesignVersion, INITIAL_VERSION


# Top-level keys whose changes matter most for the deployed network
HIGH_IMPACT_PREFIXES = (
    "requirements.ip_scheme",
    "requirements.security_requirements",
    "requirements.total_users",
    "requirements.network_segmentation",
)
MEDIUM_IMPACT_PREFIXES = (
    "requirements.segments",
    "requirements.redundancy",
    "requirements.bandwidth",
    "requirements.services",
    "existing_network_details",
)


def parse_version(version: str) -> Tuple[int, int, int]:
    major, minor, patch = (int(part) for part in version.split("."))
    return major, minor, patch


def next_version(latest: Optional[DesignVersion], bump: str = "minor") -> Tuple[int, int, int]:
    """1.0.0 for the first version; otherwise bump and reset the lower components"""
    if latest is None:
        return parse_version(INITIAL_VERSION)
    major, minor, patch = latest.major, latest.minor, latest.patch
    if bump == "major":
        return major + 1, 0, 0
    if bump == "minor":
        return major, minor + 1, 0
    return major, minor, patch + 1


def format_version(parts: Tuple[int, int, int]) -> str:
    return ".".join(str(part) for part in parts)


def impact_for(path: str) -> str:
    if path.startswith(HIGH_IMPACT_PREFIXES):
        return "high"
    if path.startswith(MEDIUM_IMPACT_PREFIXES):
        return "medium"
    return "low"


def diff(old: Any, new: Any, path: str = "") -> List[Dict[str, Any]]:
    """
    Flat list of changes between two snapshots.

    Dicts are compared key by key; lists and scalars are compared as whole
    values.
    """
    if isinstance(old, dict) and isinstance(new, dict):
        changes = []
        for key in list(old.keys()) + [k for k in new.keys() if k not in old]:
            child = f"{path}.{key}" if path else str(key)
            if key not in new:
                changes.append(_change(child, "remove", old[key], None))
            elif key not in old:
                changes.append(_change(child, "add", None, new[key]))
            else:
                changes.extend(diff(old[key], new[key], child))
        return changes

    if old == new:
        return []
    if old is None:
        return [_change(path, "add", None, new)]
    if new is None:
        return [_change(path, "remove", old, None)]
    return [_change(path, "modify", old, new)]


def _change(path: str, operation: str, old_value: Any, new_value: Any) -> Dict[str, Any]:
    verb = {"add": "Added", "remove": "Removed", "modify": "Changed"}[operation]
    return {
        "path": path,
        "operation": operation,
        "old_value": old_value,
        "new_value": new_value,
        "impact": impact_for(path),
        "description": f"{verb} {path}",
    }
