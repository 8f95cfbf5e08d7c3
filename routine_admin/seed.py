import logging
from sqlalchemy.orm import Session
from routine_admin import db as database
from routine_admin.models.routine import Routine
from routine_admin.schemas.routine import RoutineIn

logger = logging.getLogger(__name__)

SEED_ROUTINES = [
    RoutineIn(
        name="Data Sync",
        description="Syncs data with the main server",
        frequency_type="minute",
        frequency_value=5,
        start_time="00:00",
        duration=30,
        duration_unit="minute",
        is_active=True,
    ),
    RoutineIn(
        name="Health Check",
        description="Checks service health",
        frequency_type="second",
        frequency_value=30,
        start_time="00:00",
        duration=5,
        duration_unit="second",
        is_active=True,
    ),
    RoutineIn(
        name="Daily Backup",
        description="Runs a full database backup",
        frequency_type="hour",
        frequency_value=1,
        start_time="02:00",
        duration=2,
        duration_unit="hour",
        is_active=True,
    ),
    RoutineIn(
        name="Cache Cleanup",
        description="Removes old temporary files",
        frequency_type="minute",
        frequency_value=15,
        start_time="06:00",
        duration=45,
        duration_unit="minute",
        is_active=False,
    ),
    RoutineIn(
        name="Log Monitoring",
        description="Analyzes and processes system logs",
        frequency_type="second",
        frequency_value=10,
        start_time="08:00",
        duration=3,
        duration_unit="second",
        is_active=True,
    ),
    RoutineIn(
        name="Index Rebuild",
        description="Rebuilds database indexes",
        frequency_type="hour",
        frequency_value=6,
        start_time="04:00",
        duration=1,
        duration_unit="hour",
        is_active=True,
    ),
    RoutineIn(
        name="Report Delivery",
        description="Sends automatic reports by email",
        frequency_type="hour",
        frequency_value=24,
        start_time="09:00",
        duration=30,
        duration_unit="minute",
        is_active=True,
    ),
    RoutineIn(
        name="Security Scan",
        description="Runs vulnerability scans",
        frequency_type="minute",
        frequency_value=30,
        start_time="12:00",
        duration=1,
        duration_unit="hour",
        is_active=False,
    ),
]


def seed() -> int:
    if database.SessionLocal is None:
        raise SystemExit("DATABASE_URL is not set; the in-memory backend seeds itself on startup.")

    database.ensure_schema()
    db: Session = database.SessionLocal()
    try:
        existing = db.query(Routine).count()
        if existing:
            logger.info("routines table already has %d rows, skipping seed", existing)
            return 0
        for position, candidate in enumerate(SEED_ROUTINES, start=1):
            db.add(Routine(**candidate.model_dump(), position=position))
        db.commit()
        logger.info("seeded %d routines", len(SEED_ROUTINES))
        return len(SEED_ROUTINES)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    seed()
