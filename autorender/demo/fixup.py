"""
Repair of demos recorded on old versions of Portal 2.

Old versions networked a ``CPointSurvey`` entity. Newer versions replaced
it with a second ``CPointCamera`` server class, which means old demos
fail to play back on the current game. The fix removes the survey table
and turns its server class into the camera class.

A few maps use the survey entity on purpose. The same maps are also the
ones a third-party fixup tool breaks, and both cases look the same in
the data tables, so demos on those maps are never touched.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from autorender.demo.models import Demo, DemoCodec

logger = logging.getLogger("autorender.demo")

SUPPORTED_GAME_DIRECTORIES = frozenset({
    "portal2",
    "aperturetag",
    "portal_stories",
    "portalreloaded",
})

CAMERA_CLASS_NAME = "CPointCamera"
CAMERA_TABLE_NAME = "DT_PointCamera"
SURVEY_TABLE_NAME = "DT_PointSurvey"

UNFIXABLE_MAPS = frozenset({
    "sp_a2_core",
    "sp_a2_bts5",
    "sp_a3_00",
    "sp_a4_finale4",
})


class Outcome(enum.Enum):
    NOT_APPLICABLE = "not_applicable"
    PARSE_FAILURE = "parse_failure"
    ALREADY_FIXED = "already_fixed"
    UNFIXABLE = "unfixable"
    NOT_REQUIRED = "not_required"
    REPAIRED = "repaired"


MESSAGES = {
    Outcome.NOT_APPLICABLE: "Demo is not from a supported game.",
    Outcome.PARSE_FAILURE: "Failed to parse demo.",
    Outcome.ALREADY_FIXED: "Demo is already fixed.",
    Outcome.UNFIXABLE: "Demo cannot be fixed.",
    Outcome.NOT_REQUIRED: "Demo does not need a fix.",
    Outcome.REPAIRED: "Fixed old demo.",
}


@dataclass(frozen=True)
class FixupResult:
    outcome: Outcome
    reason: Optional[str] = None
    data: Optional[bytes] = None

    def __post_init__(self):
        if (self.data is not None) != (self.outcome is Outcome.REPAIRED):
            raise ValueError("Only a repaired demo carries data")

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.REPAIRED

    @property
    def message(self) -> str:
        return self.reason or MESSAGES[self.outcome]


def repair(demo: Demo, size: int, codec: DemoCodec) -> FixupResult:
    """
    Fix ``demo`` in place if it was recorded on an old game version.

    ``size`` is the length of the original file and is only passed on to
    the codec as a hint for the output buffer.
    """
    if demo.game_directory not in SUPPORTED_GAME_DIRECTORIES:
        return FixupResult(Outcome.NOT_APPLICABLE)

    dt = demo.find_data_table()
    if dt is None:
        return FixupResult(Outcome.PARSE_FAILURE, "Failed to find data tables.")

    cameras = sum(1 for svc in dt.server_classes if svc.class_name == CAMERA_CLASS_NAME)
    if cameras == 2:
        if demo.map_name in UNFIXABLE_MAPS:
            return FixupResult(
                Outcome.UNFIXABLE,
                "Demo was corrupted by another fixup tool and cannot be fixed.",
            )
        return FixupResult(Outcome.ALREADY_FIXED)

    survey = next(
        (i for i, table in enumerate(dt.tables) if table.net_table_name == SURVEY_TABLE_NAME),
        None,
    )
    if survey is None:
        return FixupResult(
            Outcome.NOT_REQUIRED,
            "Demo was recorded on a version that does not need a fix.",
        )

    if demo.map_name in UNFIXABLE_MAPS:
        return FixupResult(
            Outcome.UNFIXABLE,
            f"Demos on {demo.map_name} cannot be fixed.",
        )

    svc = next(
        (svc for svc in dt.server_classes if svc.data_table_name == SURVEY_TABLE_NAME),
        None,
    )
    if svc is None:
        return FixupResult(Outcome.PARSE_FAILURE, "Failed to find survey server class.")

    del dt.tables[survey]
    svc.class_name = CAMERA_CLASS_NAME
    svc.data_table_name = CAMERA_TABLE_NAME

    logger.debug(
        "Removed table %d and renamed server class %d on %s",
        survey,
        svc.class_id,
        demo.map_name,
    )

    try:
        fixed = codec.save(demo, size)
    except Exception as e:
        logger.error("Failed to save fixed demo", exc_info=e)
        return FixupResult(Outcome.PARSE_FAILURE, "Failed to save fixed demo.")

    return FixupResult(Outcome.REPAIRED, data=fixed)


def repair_bytes(data: bytes, codec: DemoCodec) -> FixupResult:
    """Parse ``data`` with ``codec`` and repair it."""
    try:
        demo = codec.parse(data)
    except Exception as e:
        logger.warning("Failed to parse demo (%d bytes)", len(data), exc_info=e)
        return FixupResult(Outcome.PARSE_FAILURE)
    return repair(demo, len(data), codec)
