from __future__ import annotations

APP_NAME = "FloorPlan"
APP_VERSION = "1.0.0"

# Salles connues du site (clé API -> libellé affiché)
ROOM_LABELS = {
    "roubenka": "Roubenka",
    "terasa": "Terasa",
    "stodolka": "Stodolka",
    "cely_areal": "Celý areál",
}

GUEST_TYPE_LABELS = {
    "adult": "Dospělý",
    "child": "Dítě",
}

DEFAULT_TABLE_CAPACITY = 10

# Clés utilisées par le glisser-déposer
GUEST_MIME_TYPE = "application/x-floorplan-guest"
UNASSIGNED_KEY = "unassigned"
