from datetime import datetime, timezone

USER_FIELDS = ("email", "username", "password")
LAYOUT_FIELDS = ("userId", "username", "layoutName", "grid")
COMMENT_FIELDS = ("layoutOwner", "layoutName", "username", "commentText")
FAVORITE_FIELDS = ("commonName", "scientificName", "image", "collection")


class ValidationFailure(Exception):
    """A document failed the checks that run before it is written."""


def missing_fields(data, fields):
    return [f for f in fields if data.get(f) in (None, "")]


def _require(doc, fields):
    missing = missing_fields(doc, fields)
    if missing:
        raise ValidationFailure(f"Missing required field(s): {', '.join(missing)}")


def new_user(email, username, password_hash):
    doc = {
        "email": email,
        "username": username,
        "password": password_hash,
        "favorites": [],
    }
    _require(doc, USER_FIELDS)
    return doc


def new_layout(user, layout_name, grid):
    doc = {
        "userId": user["_id"],
        "username": user["username"],
        "layoutName": layout_name,
        "grid": grid,
    }
    _require(doc, LAYOUT_FIELDS)
    if not isinstance(grid, list):
        raise ValidationFailure("grid must be a list")
    return doc


def _now():
    # MongoDB keeps datetimes to the millisecond
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def new_comment(layout_owner, layout_name, username, comment_text, timestamp=None):
    doc = {
        "layoutOwner": layout_owner,
        "layoutName": layout_name,
        "username": username,
        "commentText": comment_text,
        "timestamp": timestamp or _now(),
    }
    _require(doc, COMMENT_FIELDS)
    return doc


def favorite_entry(data):
    plant_id = data.get("plantId")
    if plant_id in (None, ""):
        raise ValidationFailure("Missing required field(s): plantId")
    entry = {"plantId": str(plant_id)}
    for field in FAVORITE_FIELDS:
        entry[field] = data.get(field)
    safety = data.get("safety") or {}
    entry["safety"] = {"cats": safety.get("cats"), "dogs": safety.get("dogs")}
    return entry


class Favorites:
    """A user's favorites as an ordered set keyed on plantId.

    Entries loaded from the store that share a plantId collapse to the
    first one seen.
    """

    def __init__(self, entries=None):
        self._entries = {}
        for entry in entries or []:
            self._entries.setdefault(str(entry.get("plantId")), entry)

    def add(self, entry):
        self._entries.setdefault(entry["plantId"], entry)

    def discard(self, plant_id):
        self._entries.pop(str(plant_id), None)

    def __contains__(self, plant_id):
        return str(plant_id) in self._entries

    def __len__(self):
        return len(self._entries)

    def to_list(self):
        return list(self._entries.values())
