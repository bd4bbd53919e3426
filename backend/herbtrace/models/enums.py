"""Closed enumerations for user roles and stage-record classifications.

Stored values match what the frontend forms submit (e.g. ``"Whole Plant"``,
``"drying"``).  Each enum has a display-label table used by
``GET /api/options``.
"""

import enum


class UserRole(str, enum.Enum):
    COLLECTOR = "collector"
    TRANSPORTER = "transporter"
    PROCESSING_PLANT = "processing_plant"
    LAB_TESTING = "lab_testing"
    CONSUMER = "consumer"
    MANUFACTURER = "manufacturer"


class FarmingType(str, enum.Enum):
    ORGANIC = "Organic"
    CONVENTIONAL = "Conventional"
    WILD = "Wild"


class PlantPart(str, enum.Enum):
    LEAF = "Leaf"
    ROOT = "Root"
    STEM = "Stem"
    FLOWER = "Flower"
    SEED = "Seed"
    RHIZOME = "Rhizome"
    TUBERS = "Tubers"
    WHOLE_PLANT = "Whole Plant"
    BARK = "Bark"
    HEARTWOOD = "Heartwood"
    STIGMA = "Stigma"
    MYCELIUM = "Mycelium"


class ProcessingType(str, enum.Enum):
    SORTING = "sorting"
    GRADING = "grading"
    DRYING = "drying"
    PACKING = "packing"
    OTHER = "other"


class TestType(str, enum.Enum):
    __test__ = False  # not a pytest class

    MOISTURE = "moisture"
    CONTAMINATION = "contamination"
    PH = "pH"
    CHEMICAL = "chemical"
    OTHER = "other"


class VedaUsed(str, enum.Enum):
    RIG = "Rig Veda"
    SAMA = "Sama Veda"
    YAJUR = "Yajur Veda"
    ATHARVA = "Atharva Veda"


# ── Display tables ──────────────────────────────────────────

ROLE_LABELS: dict[UserRole, str] = {
    UserRole.COLLECTOR: "Collector",
    UserRole.TRANSPORTER: "Transporter",
    UserRole.PROCESSING_PLANT: "Processing Plant",
    UserRole.LAB_TESTING: "Lab Testing",
    UserRole.CONSUMER: "Consumer",
    UserRole.MANUFACTURER: "Manufacturer",
}

FARMING_TYPE_LABELS: dict[FarmingType, str] = {
    FarmingType.ORGANIC: "Organic",
    FarmingType.CONVENTIONAL: "Conventional",
    FarmingType.WILD: "Wild-harvested",
}

PLANT_PART_LABELS: dict[PlantPart, str] = {p: p.value for p in PlantPart}

PROCESSING_TYPE_LABELS: dict[ProcessingType, str] = {
    ProcessingType.SORTING: "Sorting",
    ProcessingType.GRADING: "Grading",
    ProcessingType.DRYING: "Drying",
    ProcessingType.PACKING: "Packing",
    ProcessingType.OTHER: "Other",
}

TEST_TYPE_LABELS: dict[TestType, str] = {
    TestType.MOISTURE: "Moisture content",
    TestType.CONTAMINATION: "Contamination",
    TestType.PH: "pH",
    TestType.CHEMICAL: "Chemical analysis",
    TestType.OTHER: "Other",
}

VEDA_LABELS: dict[VedaUsed, str] = {v: v.value for v in VedaUsed}


def options_table() -> dict[str, list[dict[str, str]]]:
    """Return every enumeration as ``[{"value": ..., "label": ...}]`` lists."""
    tables = {
        "roles": ROLE_LABELS,
        "farmingTypes": FARMING_TYPE_LABELS,
        "plantParts": PLANT_PART_LABELS,
        "processingTypes": PROCESSING_TYPE_LABELS,
        "testTypes": TEST_TYPE_LABELS,
        "vedas": VEDA_LABELS,
    }
    return {
        name: [{"value": member.value, "label": label} for member, label in table.items()]
        for name, table in tables.items()
    }
