# app/core/catalog.py
"""
Static catalogue data: bookable rooms, their built-in equipment,
and asset-tag prefixes per product category.
"""

ROOMS: dict[str, list[dict[str, str]]] = {
    "junior_high": [
        {"id": "jh_phaya", "name": "ห้องพญาสัตบรรณ"},
        {"id": "jh_gym", "name": "โรงยิม"},
        {"id": "jh_chamchuri", "name": "ห้องจามจุรี"},
    ],
    "senior_high": [
        {"id": "sh_leelawadee", "name": "ห้องลีลาวดี"},
        {"id": "sh_auditorium", "name": "หอประชุม"},
        {"id": "sh_king_science", "name": "ห้องศาสตร์พระราชา"},
        {"id": "sh_language_center", "name": "ห้องศูนย์ภาษา"},
        {"id": "sh_admin_3", "name": "ชั้น 3 อาคารอำนวยการ"},
    ],
}

ROOM_EQUIPMENT: dict[str, list[str]] = {
    "jh_phaya": ["จอ LED", "ไมค์ลอย", "Pointer"],
    "jh_gym": ["จอ Projector", "Projector", "ไมค์ลอย", "Pointer"],
    "jh_chamchuri": ["จอ TV", "ไมค์ลอย", "Pointer"],
    "sh_leelawadee": ["จอ LED", "จอ TV", "ไมค์ก้าน", "ไมค์ลอย", "Pointer"],
    "sh_auditorium": ["จอ LED", "ไมค์ลอย", "Pointer"],
    "sh_king_science": ["จอ TV", "ไมค์ลอย", "ไมค์ก้าน", "Pointer"],
    "sh_language_center": ["จอ TV", "ไมค์ลอย", "ไมค์ก้าน", "Pointer"],
    "sh_admin_3": ["จอ Projector", "Projector", "ไมค์สาย", "Pointer"],
}

ROOM_LAYOUTS = ("u_shape", "classroom", "empty", "other")

CATEGORY_PREFIXES: dict[str, str] = {
    "computer": "COM",
    "notebook": "NBK",
    "tablet": "TAB",
    "camera": "CAM",
    "audio": "AUD",
    "projector": "PRJ",
    "network": "NET",
    "cable": "CAB",
    "consumable": "CON",
}

DEFAULT_CATEGORY_PREFIX = "GEN"


def iter_rooms():
    """Yield (zone, room_dict) for every catalogue room."""
    for zone, rooms in ROOMS.items():
        for room in rooms:
            yield zone, room


def get_equipment_for_room(room_id: str) -> list[str]:
    return ROOM_EQUIPMENT.get(room_id, [])
